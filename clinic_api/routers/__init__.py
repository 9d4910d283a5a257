from clinic_api.routers import appointment, blog, contact, subscriber

__all__ = ["appointment", "blog", "contact", "subscriber"]
