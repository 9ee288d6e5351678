import logging
import os


def get_api_base()->str:
    return os.getenv('RAILOPS_API_BASE', 'http://localhost:8000/api')


class Settings:
    API_BASE=get_api_base()
    STATE_FILE=os.getenv('RAILOPS_STATE_FILE', '.railops/state.json')
    ACTOR=os.getenv('RAILOPS_ACTOR', 'System User')
    LOG_LEVEL=os.getenv('RAILOPS_LOG_LEVEL', 'INFO')
settings=Settings()


def configure_logging(level:str|None=None):
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
