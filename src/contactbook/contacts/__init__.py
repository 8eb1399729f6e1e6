from contactbook.contacts.models import Contact

__all__ = ["Contact"]
