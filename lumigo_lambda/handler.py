# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2020 Datadog, Inc.

import logging
import os
from importlib import import_module

from lumigo_lambda.wrapper import lumigo_lambda_wrapper

logger = logging.getLogger(__name__)

HANDLER_ENV = "LUMIGO_LAMBDA_HANDLER"


class HandlerError(Exception):
    pass


def load_user_handler(path):
    """Import the function named by ``module.function``.

    The module part may use ``/`` as a separator, as in ``src/app.handler``.
    """
    if path is None:
        raise HandlerError(
            f"{HANDLER_ENV} is not defined. Can't use prebuilt lumigo handler"
        )
    module_path, _, function_name = path.rpartition(".")
    if not module_path or not function_name:
        raise HandlerError(f"Value {path} for {HANDLER_ENV} has invalid format.")

    try:
        module = import_module(module_path.replace("/", "."))
        return getattr(module, function_name)
    except Exception:
        logger.error("failed to load handler %s", path)
        raise


handler = lumigo_lambda_wrapper(load_user_handler(os.environ.get(HANDLER_ENV)))
