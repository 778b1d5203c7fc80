# config.py
import logging


class BaseConfig:
    LOG_LEVEL = logging.INFO
    PROPAGATE_EXCEPTIONS = False
    TRAP_HTTP_EXCEPTIONS = False
    API_URL_PREFIX = "/api/v1"
    # 301/302/303 wrappers; off -> those codes are rejected
    ENVELOPE_INCLUDE_REDIRECTS = True
    # 204 answers with an empty body instead of the envelope
    ENVELOPE_EMPTY_NO_CONTENT = False


class DevConfig(BaseConfig):
    DEBUG = True
    ENV_NAME = "development"
    LOG_LEVEL = logging.DEBUG


class ProdConfig(BaseConfig):
    DEBUG = False
    ENV_NAME = "production"
    LOG_LEVEL = logging.INFO


class StagingConfig(BaseConfig):
    DEBUG = False
    ENV_NAME = "staging"
    LOG_LEVEL = logging.DEBUG


class TestConfig(BaseConfig):
    TESTING = True
    ENV_NAME = "testing"
    LOG_LEVEL = logging.WARNING
