from .api import SacrudFastAPI, install_crud_exception_handlers

__all__ = ["SacrudFastAPI", "install_crud_exception_handlers"]
