__version__ = "0.3.1"
__description__ = "sacrud : SqlAlchemy CRUD resources for Flask and FastAPI"
