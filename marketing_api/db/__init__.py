from marketing_api.db.base import Base, TimestampMixin, utc_now

__all__ = ["Base", "TimestampMixin", "utc_now"]
