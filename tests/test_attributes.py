import unittest

from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from opentelemetry.trace import SpanKind

from lumigo_lambda.attributes import AttributeBag, collect_attributes


def finished_span(name="HttpSpan", attributes=None, resource=None, kind=None):
    exporter = InMemorySpanExporter()
    provider = TracerProvider(resource=resource or Resource.create({}))
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("tests")
    span = tracer.start_span(
        name, attributes=attributes, kind=kind or SpanKind.INTERNAL
    )
    span.end()
    return exporter.get_finished_spans()[0]


class TestAttributeBag(unittest.TestCase):
    def test_later_sources_win(self):
        bag = AttributeBag({"a": "1", "b": "1"}, {"b": "2"}, None, environ={})
        self.assertEqual(dict(bag), {"a": "1", "b": "2"})
        self.assertEqual(len(bag), 2)

    def test_get_str(self):
        bag = AttributeBag(
            {"s": "text", "i": 3, "t": True, "l": ("a", "b"), "n": None}, environ={}
        )
        self.assertEqual(bag.get_str("s"), "text")
        self.assertEqual(bag.get_str("i"), "3")
        self.assertEqual(bag.get_str("t"), "true")
        self.assertEqual(bag.get_str("l"), "[a b]")
        self.assertEqual(bag.get_str("n"), "")
        self.assertIsNone(bag.get_str("missing"))

    def test_environ_is_a_snapshot(self):
        environ = {"AWS_REGION": "us-east-1"}
        bag = AttributeBag(environ=environ)
        environ["AWS_REGION"] = "eu-west-1"
        self.assertEqual(bag.getenv("AWS_REGION"), "us-east-1")
        self.assertEqual(bag.getenv("MISSING"), "")


class TestCollectAttributes(unittest.TestCase):
    def test_resource_and_span_attributes(self):
        span = finished_span(
            attributes={"event": '{"a": 1}', "lumigo_token": "t_span"},
            resource=Resource.create({"lumigo_token": "t_resource", "faas.name": "f"}),
        )
        bag = collect_attributes(span, environ={})
        self.assertEqual(bag["faas.name"], "f")
        self.assertEqual(bag["event"], '{"a": 1}')
        # span attributes overwrite resource attributes
        self.assertEqual(bag["lumigo_token"], "t_span")
        self.assertNotIn("span.kind", bag)

    def test_span_kind_is_derived(self):
        span = finished_span(kind=SpanKind.CLIENT)
        bag = collect_attributes(span, environ={})
        self.assertEqual(bag["span.kind"], "client")
