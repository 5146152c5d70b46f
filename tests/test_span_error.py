import unittest

from lumigo_lambda.attributes import AttributeBag
from lumigo_lambda.span_error import error_attributes, extract_error
from lumigo_lambda.span_record import ErrorRecord


class TestExtractError(unittest.TestCase):
    def test_all_fields(self):
        attrs = AttributeBag(
            {
                "error_type": "ValueError",
                "error_message": "bad input",
                "error_stacktrace": "Traceback ...",
            },
            environ={},
        )
        self.assertEqual(
            extract_error(attrs),
            ErrorRecord("ValueError", "bad input", "Traceback ..."),
        )

    def test_partial_fields(self):
        attrs = AttributeBag({"error_message": "bad input"}, environ={})
        error = extract_error(attrs)
        self.assertEqual(error.type, "")
        self.assertEqual(error.message, "bad input")
        self.assertEqual(error.stacktrace, "")

    def test_no_error(self):
        self.assertIsNone(extract_error(AttributeBag({"event": "{}"}, environ={})))

    def test_non_string_values_stringified_like_attributes(self):
        attrs = AttributeBag({"error_type": True, "error_message": 42}, environ={})
        error = extract_error(attrs)
        self.assertEqual(error.type, "true")
        self.assertEqual(error.message, "42")
        self.assertEqual(error.stacktrace, "")

    def test_empty_values_are_no_error(self):
        attrs = AttributeBag({"error_type": "", "error_message": ""}, environ={})
        self.assertIsNone(extract_error(attrs))


class CustomError(Exception):
    pass


class TestErrorAttributes(unittest.TestCase):
    def test_raised_error(self):
        try:
            raise CustomError("it broke")
        except CustomError as e:
            attrs = error_attributes(e)

        self.assertEqual(attrs["error_type"], "CustomError")
        self.assertEqual(attrs["error_message"], "it broke")
        self.assertIn("Traceback", attrs["error_stacktrace"])
        self.assertIn("it broke", attrs["error_stacktrace"])

    def test_returned_error(self):
        attrs = error_attributes(KeyError("missing"))
        self.assertEqual(attrs["error_type"], "KeyError")
        self.assertEqual(attrs["error_message"], "'missing'")
        self.assertIn("test_returned_error", attrs["error_stacktrace"])


def test_extract_error_is_idempotent():
    attrs = AttributeBag({"error_type": "ValueError"}, environ={})
    assert extract_error(attrs) == extract_error(attrs)
