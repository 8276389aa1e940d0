from tiffin.services.base.base_service import BaseService, default_clock, transient_read

__all__ = ["BaseService", "default_clock", "transient_read"]
