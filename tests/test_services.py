import dataclasses

import pytest

from core import config as core_config
from core.money import AmountUnit, Money
from services.checkout import (
    CARD_METADATA_FALLBACK_CPF,
    DEFAULT_CPF,
    PAYPAL_SESSION_ID_ACCESSORS,
    REDIRECT_URL_ACCESSORS,
    PaymentExtras,
    PaymentMethodKind,
    PaymentRequest,
    build_order,
    build_payment,
    build_payment_link,
    callback_url,
    clean_document,
    extract_payment_link_url,
    extract_redirect_url,
    extract_session_id,
    field_at,
    new_merchant_order_id,
    paypal_fallback_amount,
    resolve_payment_method,
    vendor_message,
    vendor_rejected,
)
from services.nupay import get_payment_conditions, parse_amount


@pytest.fixture
def settings():
    return dataclasses.replace(
        core_config.settings,
        ACCOUNT_CODE="acc-1",
        CUSTOMER_ID="cust-1",
        BASE_URL="",
        STORE_NAME="Test Store",
    )


def _payment(settings, method_type=None, extras=None, document=None, callback=None):
    method = resolve_payment_method(method_type, extras or PaymentExtras())
    return build_payment(
        settings,
        PaymentRequest(
            checkout_session="sess-1",
            amount=Money.minor(2000, "BRL"),
            token="tok-1",
            document=document,
            method=method,
            callback_url=callback,
        ),
        "Test Store - Payment",
    )


class TestDocumentCleaning:
    """CPF normalization"""

    def test_strips_non_digits_and_truncates(self):
        assert clean_document("123.456.789-09 extra") == "12345678909"

    def test_truncates_long_digit_runs(self):
        assert clean_document("1234567890123") == "12345678901"

    def test_missing_document_uses_fallback(self):
        assert clean_document(None) == DEFAULT_CPF
        assert clean_document("") == DEFAULT_CPF

    def test_document_without_digits_is_empty(self):
        assert clean_document("abc") == ""


class TestMerchantOrderId:
    def test_ids_are_unique_per_attempt(self):
        ids = {new_merchant_order_id("paypal") for _ in range(50)}
        assert len(ids) == 50

    def test_prefix_is_kept(self):
        assert new_merchant_order_id("ORDER").startswith("ORDER-")
        assert new_merchant_order_id().startswith("order-")


class TestMoney:
    def test_minor_to_major(self):
        major = Money.minor(2000, "BRL").to_major()
        assert major.unit is AmountUnit.MAJOR
        assert major.value == 20
        assert major.currency == "BRL"

    def test_major_to_major_is_identity(self):
        money = Money.major(15.5, "BRL")
        assert money.to_major() is money

    def test_payload_has_no_unit(self):
        assert Money.minor(2000, "BRL").as_payload() == {"value": 2000, "currency": "BRL"}

    def test_paypal_fallback_amount_treats_large_values_as_cents(self):
        assert paypal_fallback_amount(Money.minor(2000, "BRL")) == Money.major(20, "BRL")

    def test_paypal_fallback_amount_keeps_small_values(self):
        assert paypal_fallback_amount(Money.minor(50, "BRL")) == Money.major(50, "BRL")


class TestPaymentMethodResolution:
    def test_default_is_card(self):
        method = resolve_payment_method(None, PaymentExtras())
        assert method.kind is PaymentMethodKind.CARD
        assert method.type == "CARD"
        assert method.detail is None

    @pytest.mark.parametrize("alias", ["PAYPAL", "PAYPAL_WALLET", "PAY_PAL"])
    def test_paypal_aliases_normalize(self, alias):
        method = resolve_payment_method(alias, PaymentExtras())
        assert method.kind is PaymentMethodKind.PAYPAL
        assert method.type == "PAYPAL"
        assert method.detail == {"paypal": {}}

    def test_card_installments_detail(self):
        method = resolve_payment_method("CARD", PaymentExtras(installments=3))
        assert method.detail == {"card": {"installments": 3, "installments_type": "MERCHANT"}}

    def test_nupay_detail(self):
        extras = PaymentExtras(nupay={"fundingSource": "credit", "installments": 2, "authorizationType": "manually_authorized"})
        method = resolve_payment_method("NU_PAY", extras)
        assert method.kind is PaymentMethodKind.NU_PAY
        assert method.detail == {
            "nupay": {"funding_source": "credit", "installments": 2, "authorization_type": "manually_authorized"}
        }

    def test_nupay_without_data_has_no_detail(self):
        assert resolve_payment_method("NU_PAY", PaymentExtras()).detail is None

    def test_unknown_type_passes_through(self):
        method = resolve_payment_method("PIX", PaymentExtras(installments=3))
        assert method.kind is PaymentMethodKind.OTHER
        assert method.type == "PIX"
        assert method.detail is None


class TestPayloadBuilders:
    def test_order_payload(self, settings):
        order = build_order(settings, Money.minor(2000, "BRL"), "BR", "Test Store - Checkout")
        assert order["account_id"] == "acc-1"
        assert order["customer_id"] == "cust-1"
        assert order["amount"] == {"value": 2000, "currency": "BRL"}
        assert order["merchant_order_id"].startswith("order-")

    def test_order_without_customer(self, settings):
        order = build_order(dataclasses.replace(settings, CUSTOMER_ID=""), Money.minor(100, "USD"), "US", "x")
        assert "customer_id" not in order

    def test_card_payment_metadata(self, settings):
        payment = _payment(settings, document="123.456.789-09")
        assert payment["payment_method"] == {"type": "CARD", "token": "tok-1", "vaulted_token": None}
        assert payment["customer_payer"]["document"] == {"document_type": "CPF", "document_number": "12345678909"}
        assert payment["metadata"] == [
            {"key": "cpf", "value": "12345678909"},
            {"key": "type", "value": "card"},
        ]
        assert "workflow" not in payment

    def test_card_metadata_fallback_cpf(self, settings):
        payment = _payment(settings, document="no digits")
        assert payment["metadata"][0] == {"key": "cpf", "value": CARD_METADATA_FALLBACK_CPF}

    def test_placeholder_addresses(self, settings):
        payer = _payment(settings)["customer_payer"]
        assert payer["billing_address"] == payer["shipping_address"]
        assert payer["billing_address"]["zip_code"] == "10001"
        assert payer["billing_address"]["country"] == "BR"
        assert payer["nationality"] == "BR"
        assert payer["id"] == "cust-1"

    @pytest.mark.parametrize("alias", ["PAYPAL", "PAYPAL_WALLET", "PAY_PAL"])
    def test_paypal_payment_forces_redirect(self, settings, alias):
        payment = _payment(settings, method_type=alias, callback="https://shop.test/payment-success?provider=paypal")
        assert payment["payment_method"]["type"] == "PAYPAL"
        assert payment["payment_method"]["detail"] == {"paypal": {}}
        assert payment["workflow"] == "REDIRECT"
        assert payment["callback_url"] == "https://shop.test/payment-success?provider=paypal"
        assert payment["metadata"] == [
            {"key": "payment_method", "value": "paypal"},
            {"key": "type", "value": "wallet"},
        ]

    def test_nupay_payment_has_no_metadata(self, settings):
        payment = _payment(settings, method_type="NU_PAY", extras=PaymentExtras(nupay={"fundingSource": "debit"}))
        assert payment["payment_method"]["detail"]["nupay"]["funding_source"] == "debit"
        assert "metadata" not in payment

    def test_payment_link_requires_major_units(self, settings):
        with pytest.raises(ValueError):
            build_payment_link(settings, Money.minor(2000, "BRL"), "x", ["CARD"])

    def test_payment_link_payload(self, settings):
        link = build_payment_link(settings, Money.major(30, "BRL"), "Payment Shirt", ("CARD", "PIX"))
        assert link["amount"] == {"value": 30, "currency": "BRL"}
        assert link["payment_method_types"] == ["CARD", "PIX"]
        assert link["merchant_order_id"].startswith("ORDER-")
        assert link["country"] == "BR"

    def test_callback_url_prefers_base_url(self, settings):
        configured = dataclasses.replace(settings, BASE_URL="https://shop.example.com/")
        assert callback_url(configured, "http://testserver") == "https://shop.example.com/payment-success?provider=paypal"
        assert callback_url(settings, "http://testserver") == "http://testserver/payment-success?provider=paypal"


class TestResponseExtraction:
    def test_session_id_locations(self):
        assert extract_session_id({"checkout_session": "a", "id": "b"}) == "a"
        assert extract_session_id({"data": {"checkout_session": "c"}, "id": "b"}) == "c"
        assert extract_session_id({"id": "b"}) == "b"
        assert extract_session_id({"messages": ["bad"]}) is None

    def test_paypal_session_id_prefers_top_level_id(self):
        response = {"id": "sess-id", "data": {"checkout_session": "sess-nested"}}
        assert extract_session_id(response) == "sess-nested"
        assert extract_session_id(response, PAYPAL_SESSION_ID_ACCESSORS) == "sess-id"
        assert extract_session_id({"checkout_session": "a", "id": "b"}, PAYPAL_SESSION_ID_ACCESSORS) == "a"
        assert [name for name, _ in PAYPAL_SESSION_ID_ACCESSORS] == ["checkout_session", "id", "data.checkout_session"]

    def test_field_at_stops_at_scalars(self):
        assert field_at({"amount": 2000}, "amount", "currency") is None
        assert field_at({"amount": {"currency": "USD"}}, "amount", "currency") == "USD"
        assert field_at(None, "amount") is None

    def test_redirect_precedence_data_before_checkout_url(self):
        response = {"data": {"redirect_url": "https://data"}, "checkout_url": "https://checkout"}
        assert extract_redirect_url(response) == "https://data"

    def test_top_level_redirect_wins(self):
        response = {"redirect_url": "https://top", "data": {"redirect_url": "https://data"}}
        assert extract_redirect_url(response) == "https://top"

    def test_payment_method_detail_wallet(self):
        response = {"payment_method": {"payment_method_detail": {"wallet": {"redirect_url": "https://wallet"}}}}
        assert extract_redirect_url(response) == "https://wallet"

    def test_nested_data_payment_method(self):
        response = {"data": {"payment_method": {"redirect_url": "https://pm"}}, "approval_url": "https://approval"}
        assert extract_redirect_url(response) == "https://pm"

    def test_detail_paypal_redirect(self):
        response = {"payment_method": {"detail": {"paypal": {"redirect_url": "https://paypal"}}}}
        assert extract_redirect_url(response) == "https://paypal"

    def test_approval_url_before_checkout_url(self):
        response = {"payment_method": {"approval_url": "https://approval"}, "checkout_url": "https://checkout"}
        assert extract_redirect_url(response) == "https://approval"

    def test_empty_values_are_skipped(self):
        response = {"redirect_url": "", "data": {"redirect_url": None}, "checkout_url": "https://checkout"}
        assert extract_redirect_url(response) == "https://checkout"

    def test_no_redirect(self):
        assert extract_redirect_url({"status": "PENDING"}) is None
        assert extract_redirect_url(None) is None

    def test_accessor_order(self):
        assert [name for name, _ in REDIRECT_URL_ACCESSORS] == [
            "redirect_url",
            "data.redirect_url",
            "payment_method.redirect_url",
            "detail.redirect_url",
            "wallet.redirect_url",
            "detail.paypal.redirect_url",
            "approval_url",
            "payment_method.approval_url",
            "checkout_url",
        ]

    def test_payment_link_url(self):
        assert extract_payment_link_url({"url": "https://u", "link": "https://l"}) == "https://u"
        assert extract_payment_link_url({"checkout_url": "https://c", "payment_link": "https://p"}) == "https://c"

    def test_vendor_rejection_detection(self):
        assert vendor_rejected({"code": "INVALID"})
        assert vendor_rejected({"error": "boom"})
        assert not vendor_rejected({"messages": ["x"]})
        assert vendor_rejected({"messages": ["x"]}, include_messages=True)
        assert not vendor_rejected({"id": "pay-1", "status": "PENDING"}, include_messages=True)

    def test_empty_containers_count_as_rejection(self):
        assert vendor_rejected({"id": "pay-1", "messages": []}, include_messages=True)
        assert vendor_rejected({"messages": {}}, include_messages=True)
        assert not vendor_rejected({"id": "pay-1", "messages": []})
        assert not vendor_rejected({"code": "", "error": None})

    def test_vendor_message_precedence(self):
        assert vendor_message({"messages": ["first", "second"], "message": "m"}) == "first"
        assert vendor_message({"message": "m"}) == "m"
        assert vendor_message({}, None, "fallback") == "fallback"

    def test_vendor_message_ignores_non_list_messages(self):
        assert vendor_message({"messages": {"amount": "required"}, "message": "m"}) == "m"
        assert vendor_message({"messages": "oops"}, "fallback") == "fallback"
        assert vendor_message({"messages": []}) is None


class TestNuPayConditions:
    def test_plan_menu_shape(self):
        conditions = get_payment_conditions(2000, "12345678909")
        assert [c["type"] for c in conditions] == ["debit", "credit", "credit_with_additional_limit"]
        assert conditions[0]["installmentPlans"] == [{"amount": 2000, "number": 1}]
        assert [p["number"] for p in conditions[1]["installmentPlans"]] == [1, 2, 3]

    def test_three_installments_example(self):
        plan = get_payment_conditions(2000)[1]["installmentPlans"][2]
        assert plan["interest"] == 0.05
        assert plan["interestAmount"] == 100
        assert plan["iof"] == 16
        assert plan["iofPercentage"] == 0.008
        assert plan["totalAmount"] == 2160
        assert plan["cet"] == 0.88
        assert plan["amount"] == pytest.approx(2000 / 3)

    @pytest.mark.parametrize("amount", [1, 999.9, 12345])
    def test_formulas(self, amount):
        conditions = get_payment_conditions(amount)
        third = conditions[1]["installmentPlans"][2]
        assert third["interestAmount"] == amount * 0.05
        assert third["iof"] == amount * 0.008
        assert third["totalAmount"] == amount * 1.08

        extra = conditions[2]
        assert extra["amount"] == amount
        plan = extra["installmentPlans"][0]
        assert plan["amount"] == amount * 1.01
        assert plan["interestAmount"] == amount * 0.02
        assert plan["interest"] == 0.0499
        assert plan["iof"] == amount * 0.0038
        assert plan["iofPercentage"] == 0.0055
        assert plan["cet"] == 0.939
        assert plan["totalAmount"] == amount * 1.039

    def test_missing_amount_is_rejected(self):
        with pytest.raises(ValueError):
            get_payment_conditions(None)
        with pytest.raises(ValueError):
            get_payment_conditions(float("nan"))

    def test_numeric_strings_are_accepted(self):
        assert parse_amount("2000") == 2000.0
        assert parse_amount(" 12.5 ") == 12.5
        assert get_payment_conditions("2000")[1]["installmentPlans"][1]["amount"] == 1000.0

    @pytest.mark.parametrize("raw", ["abc", "", "inf", True, [1], {"value": 1}])
    def test_unusable_amounts_are_rejected(self, raw):
        with pytest.raises(ValueError):
            parse_amount(raw)
