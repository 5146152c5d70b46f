# The version is reported in every span record under `info.tracer.version`.
from lumigo_lambda.version import __version__  # noqa: F401
from lumigo_lambda.logger import initialize_logging


initialize_logging(__name__)
