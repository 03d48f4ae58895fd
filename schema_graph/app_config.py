# -*- coding: utf-8 -*-
"""
Configuration - loads connection and rendering settings from the environment
"""
import os
from urllib.parse import unquote, urlsplit

from dotenv import load_dotenv

# pick up a .env file when there is one
load_dotenv()


class Config:
    """Base configuration"""

    # database
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', '3306'))
    DB_USER = os.getenv('DB_USER', 'root')
    DB_PASSWORD = os.getenv('DB_PASSWORD', '')
    DB_NAME = os.getenv('DB_NAME', '')
    DB_CHARSET = os.getenv('DB_CHARSET', 'utf8mb4')
    DB_CONNECT_TIMEOUT = int(os.getenv('DB_CONNECT_TIMEOUT', '10'))
    DB_READ_TIMEOUT = int(os.getenv('DB_READ_TIMEOUT', '300'))

    # user:password@host:port/database, overrides the DB_* settings
    SCHEMA_GRAPH_DSN = os.getenv('SCHEMA_GRAPH_DSN', '')

    # graphviz layout
    DOT_ENGINE = os.getenv('DOT_ENGINE', 'osage')
    DOT_FORMAT = os.getenv('DOT_FORMAT', 'svg')

    @classmethod
    def validate(cls):
        """Raise ValueError when settings needed to connect are missing"""

    @classmethod
    def get_db_config(cls, dsn: str = ''):
        """Keyword arguments for pymysql.connect"""
        db_config = {
            'host': cls.DB_HOST,
            'port': cls.DB_PORT,
            'user': cls.DB_USER,
            'password': cls.DB_PASSWORD,
            'database': cls.DB_NAME or None,
            'charset': cls.DB_CHARSET,
            'connect_timeout': cls.DB_CONNECT_TIMEOUT,
            'read_timeout': cls.DB_READ_TIMEOUT,
        }
        db_config.update(parse_dsn(dsn or cls.SCHEMA_GRAPH_DSN))
        return db_config


class DevelopmentConfig(Config):
    """Development"""


class ProductionConfig(Config):
    """Production"""

    @classmethod
    def validate(cls):
        """Production runs need real credentials"""
        required = [
            ('DB_PASSWORD', cls.DB_PASSWORD, ''),
        ]

        missing = []
        for name, value, default in required:
            if not value or value == default:
                missing.append(name)

        if missing:
            raise ValueError(f"missing production settings: {', '.join(missing)}")


class TestingConfig(Config):
    """Testing"""
    DB_NAME = os.getenv('TEST_DB_NAME', '')


def parse_dsn(dsn: str):
    """
    Split user:password@host:port/database into pymysql.connect arguments.

    Every part is optional; only the parts present are returned.
    """
    if not dsn:
        return {}
    parts = urlsplit(dsn if '://' in dsn else 'mysql://' + dsn)
    result = {}
    if parts.username:
        result['user'] = unquote(parts.username)
    if parts.password is not None:
        result['password'] = unquote(parts.password)
    if parts.hostname:
        result['host'] = parts.hostname
    if parts.port:
        result['port'] = parts.port
    database = parts.path.lstrip('/')
    if database:
        result['database'] = unquote(database)
    return result


# chosen by SCHEMA_GRAPH_ENV
def get_config():
    """Configuration class for the current environment"""
    env = os.getenv('SCHEMA_GRAPH_ENV', 'development')

    config_map = {
        'development': DevelopmentConfig,
        'production': ProductionConfig,
        'testing': TestingConfig
    }

    return config_map.get(env, DevelopmentConfig)


config = get_config()
