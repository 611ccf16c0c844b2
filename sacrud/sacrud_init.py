import logging
import os
import sys
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
import flask.app
import sacrud
from typing import Optional


class SACRUD:
    """This class configures the Flask application that serves sacrud resources
    :param app: a Flask application.
    :param app_db: the Flask-SQLAlchemy extension, looked up in app.extensions if not given
    :param LOGLEVEL: loglevel configuration variable, values from logging module (0: trace, .. 50: critical)
    """

    # Configuration settings are stored as class variables
    DEFAULT_PAGE_LIMIT = 250
    MAX_PAGE_LIMIT = 100000
    MAX_PAGE_OFFSET = 2**31
    LOGLEVEL = logging.WARNING
    # raise InvalidQueryKey instead of ignoring order_by=<unknown field>
    STRICT_ORDER_BY = False
    # delimiter between the field, relation field and modifier of a filter key
    KEY_DELIMITER = "__"

    def __init__(self, app: Optional[flask.app.Flask] = None, *args, **kwargs) -> None:
        """
        Constructor
        """
        self.app = app
        self.db = None
        if app is not None:
            self.init_app(app, *args, **kwargs)

    def init_app(self, app: flask.app.Flask, app_db: Optional[SQLAlchemy] = None, **kwargs) -> None:
        """
        Application initialization
        """
        if not isinstance(app, Flask):  # pragma: no cover
            raise TypeError("'app' should be Flask.")

        if app_db is None:
            app_db = app.extensions.get("sqlalchemy")
        if app_db is not None and not isinstance(app_db, SQLAlchemy):
            raise TypeError("'app_db' should be a Flask-SQLAlchemy extension.")
        self.db = app_db

        app.url_map.strict_slashes = False

        if app.config.get("DEBUG", False):
            log.setLevel(logging.DEBUG)

        for conf_name, conf_val in kwargs.items():
            setattr(SACRUD, conf_name, conf_val)

        for conf_name, conf_val in app.config.items():
            setattr(SACRUD, conf_name, conf_val)

        # the configuration changed, don't serve stale values
        sacrud.config.get_config.cache_clear()

    @property
    def storage(self) -> "sacrud.storage.SessionStorage":
        """
        :return: a storage handle bound to the Flask-SQLAlchemy session
        """
        if self.db is None:
            raise RuntimeError("Flask-SQLAlchemy has not been initialized for this app")
        return sacrud.storage.SessionStorage(self.db.session)

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Specify the log format used in the webserver logs
        """
        log = logging.getLogger(__name__)
        if log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            log.setLevel(loglevel)
            log.addHandler(handler)
        return log


#
# logging initialization
#
try:
    DEBUG = os.getenv("DEBUG", logging.WARNING)
    LOGLEVEL = int(DEBUG)
except ValueError:  # pragma: no cover
    print(f'Invalid LogLevel in DEBUG Environment Variable! "{DEBUG}"')
    LOGLEVEL = logging.INFO

log = SACRUD.init_logging(LOGLEVEL)
