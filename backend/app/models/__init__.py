# Importing the models registers their tables on Base.metadata
from app.models.parcel import Parcel
from app.models.payment import Payment
from app.models.rider import Rider
from app.models.user import User

__all__ = ["Parcel", "Payment", "Rider", "User"]
