import logging
import os
import threading
import uuid

from lumigo_lambda.constants import LambdaEnv, PROVISIONED_CONCURRENCY, Readiness

logger = logging.getLogger(__name__)


class ProcessState(object):
    """
    State that lives as long as the execution environment: the container id
    and the warm-start marker. Once marked warm, a process never becomes
    cold again.
    """

    def __init__(self, container_id=None):
        self.container_id = container_id or str(uuid.uuid4())
        self._warm = False
        self._lock = threading.Lock()

    def mark_warm(self):
        """Set the warm marker, executed once an invocation completes"""
        with self._lock:
            if not self._warm:
                logger.debug("marking execution environment as warm")
            self._warm = True

    def is_warm_start(self, environ=None):
        """True once marked, or when the runtime exported IS_WARM_START"""
        if self._warm:
            return True
        environ = os.environ if environ is None else environ
        return bool(environ.get(LambdaEnv.WARM_START))

    def readiness(self, warm_start=None, environ=None):
        if warm_start is None:
            warm_start = self.is_warm_start(environ)
        if warm_start or is_provisioned_concurrency_init(environ):
            return Readiness.WARM
        return Readiness.COLD


def is_provisioned_concurrency_init(environ=None):
    environ = os.environ if environ is None else environ
    return environ.get(LambdaEnv.INITIALIZATION_TYPE) == PROVISIONED_CONCURRENCY


process_state = ProcessState()
