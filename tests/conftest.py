import pytest

from lumigo_lambda.config import config


@pytest.fixture(autouse=True)
def reset_config():
    config._reset()
    yield
    config._reset()
