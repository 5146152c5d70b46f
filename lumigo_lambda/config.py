# Unless explicitly stated otherwise all files in this repository are licensed
# under the Apache License Version 2.0.
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

import logging
import os

from lumigo_lambda.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _get_env(key, default=None, cast=None):
    """Property reading ``key`` from the environment on first access only"""
    prop_key = f"_config_{key}"

    def _getter(self):
        try:
            return self.__dict__[prop_key]
        except KeyError:
            val = self.__dict__[prop_key] = self._resolve_env(key, default, cast)
            return val

    _getter.prop_key = prop_key
    return property(_getter)


def as_bool(val):
    return val.lower() == "true" or val == "1"


class Config:
    """
    Tracer configuration. Every option is read lazily from the environment
    and cached; keyword arguments given to the constructor take precedence,
    e.g. ``Config(token="t_123", print_stdout=True)``.
    """

    def __init__(self, **options):
        for name, value in options.items():
            prop = getattr(type(self), name, None)
            if not isinstance(prop, property) or not hasattr(prop.fget, "prop_key"):
                raise TypeError(f"Unknown config option: {name}")
            self.__dict__[prop.fget.prop_key] = value

    def _resolve_env(self, key, default=None, cast=None):
        raw = os.environ.get(key, default)
        if cast is None:
            return raw
        try:
            return cast(raw)
        except (ValueError, TypeError, AttributeError):
            logger.warning(
                "Cannot read environment variable %s=%r as %s, using %r",
                key,
                raw,
                cast.__name__,
                default,
            )
            return default

    enabled = _get_env("LUMIGO_ENABLED", "true", as_bool)
    token = _get_env("LUMIGO_TOKEN", "")
    debug = _get_env("LUMIGO_DEBUG", "false", as_bool)
    print_stdout = _get_env("LUMIGO_PRINT_STDOUT", "false", as_bool)
    service_name = _get_env("LUMIGO_SERVICE_NAME", "")
    enable_thread_safe = _get_env("LUMIGO_ENABLE_THREAD_SAFE", "false", as_bool)
    trace_http = _get_env("LUMIGO_TRACE_HTTP", "true", as_bool)

    spans_dir = _get_env("LUMIGO_SPANS_DIR", "/tmp/lumigo-spans")
    tracing_file = _get_env("LUMIGO_TRACING_FILE")
    max_size_for_request = _get_env("MAX_SIZE_FOR_REQUEST", 1024 * 500, int)
    flush_timeout_ms = _get_env("LUMIGO_FLUSH_TIMEOUT", 3000, int)

    # names the start span; "function" outside of Lambda
    function_name = _get_env("AWS_LAMBDA_FUNCTION_NAME", "function")

    def validate(self):
        if not self.token:
            raise ConfigurationError(
                "invalid Token. Go to Lumigo Settings to get a valid token"
            )

    def _reset(self):
        for attr in [a for a in self.__dict__ if a.startswith("_config_")]:
            del self.__dict__[attr]


config = Config()
