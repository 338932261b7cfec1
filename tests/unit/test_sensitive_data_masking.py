import pytest

from config.settings import mask_sensitive_data

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_email_masked(self):
        event_dict = {"event": "test", "customer": "ana@example.com"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "ana@example.com" not in result["customer"]
        assert "***MASKED***" in result["customer"]

    def test_card_number_masked(self):
        event_dict = {"event": "test", "card": "4111 1111 1111 1111"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "4111 1111 1111 1111" not in result["card"]
        assert "***MASKED***" in result["card"]

    def test_password_masked(self):
        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_sensitive_data_unchanged(self):
        event_dict = {
            "event": "order.created",
            "order_number": "ORD-20260315-A1B2C3",
            "quantity": 3,
        }
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-20260315-A1B2C3"
        assert result["event"] == "order.created"
        assert result["quantity"] == 3
