from contactbook.groups.models import Group

__all__ = ["Group"]
