import logging
import os
from collections.abc import Mapping

from opentelemetry.trace import SpanKind

from lumigo_lambda.constants import SpanAttributes

logger = logging.getLogger(__name__)


class AttributeBag(Mapping):
    """
    Read-only view over the attributes of one span. Sources are applied in
    order, a later source overwriting keys of an earlier one. ``environ`` is
    the process environment as it was when the bag was collected.
    """

    def __init__(self, *sources, environ=None):
        merged = {}
        for source in sources:
            if source:
                merged.update(source)
        self._attrs = merged
        self.environ = dict(os.environ if environ is None else environ)

    def __getitem__(self, key):
        return self._attrs[key]

    def __iter__(self):
        return iter(self._attrs)

    def __len__(self):
        return len(self._attrs)

    def get_str(self, key):
        """Return the attribute as a string, or None when it is missing"""
        if key not in self._attrs:
            return None
        return _to_str(self._attrs[key])

    def getenv(self, key, default=""):
        return self.environ.get(key, default)

    def __repr__(self):
        return f"AttributeBag({self._attrs!r})"


def _to_str(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_to_str(v) for v in value) + "]"
    return str(value)


def derived_attributes(span):
    kind = getattr(span, "kind", None)
    if kind is None or kind == SpanKind.INTERNAL:
        return {}
    return {SpanAttributes.SPAN_KIND: kind.name.lower()}


def collect_attributes(span, environ=None):
    """Gather resource, span and derived attributes of a finished span"""
    resource = getattr(span, "resource", None)
    resource_attrs = dict(resource.attributes) if resource is not None else {}
    span_attrs = dict(span.attributes or {})
    bag = AttributeBag(
        resource_attrs,
        span_attrs,
        derived_attributes(span),
        environ=environ,
    )
    logger.debug("span %s attributes: %s", span.name, sorted(bag))
    return bag
