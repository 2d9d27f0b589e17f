import json

from storefront_checkout.adapters.inbound.cli import run_quote
from storefront_checkout.bootstrap import build_payment, build_storage
from storefront_checkout.adapters.outbound.dummy_payment import DummyPaymentGateway
from storefront_checkout.adapters.outbound.sqlalchemy_orders import SqlAlchemyOrderLedger
from storefront_checkout.adapters.outbound.stripe_payment import StripePaymentGateway
from storefront_checkout.config import Settings
from storefront_checkout.main import main


def test_settings_defaults():
    s = Settings.from_env({})

    assert s.stripe_secret_key is None
    assert s.stripe_webhook_secret == "whsec_dev"
    assert s.currency == "usd"
    assert s.mail_backend == "log"
    assert s.notifier_workers == 2
    assert s.log_json is False
    assert s.port == 8000


def test_settings_from_environment():
    s = Settings.from_env(
        {
            "STRIPE_SECRET_KEY": "sk_test_1",
            "CHECKOUT_CURRENCY": "EUR",
            "ADMIN_API_TOKEN": "t0ken",
            "MAIL_BACKEND": "SES",
            "NOTIFIER_WORKERS": "4",
            "LOG_JSON": "true",
            "LOG_LEVEL": "debug",
            "PORT": "9000",
        }
    )

    assert s.stripe_secret_key == "sk_test_1"
    assert s.currency == "eur"
    assert s.admin_api_token == "t0ken"
    assert s.mail_backend == "ses"
    assert s.notifier_workers == 4
    assert s.log_json is True
    assert s.log_level == "DEBUG"
    assert s.port == 9000


def test_gateway_selection_follows_configuration():
    assert isinstance(build_payment(Settings()), DummyPaymentGateway)
    assert isinstance(build_payment(Settings(stripe_secret_key="sk_test_1")), StripePaymentGateway)


def test_database_url_selects_sql_storage():
    _, orders = build_storage(Settings(database_url="sqlite://"))

    assert isinstance(orders, SqlAlchemyOrderLedger)


def test_quote_prints_priced_cart(catalog, capsys):
    code = run_quote(
        catalog, json.dumps({"customer_email": "ada@example.com", "items": [{"id": "bread-1", "quantity": 2}]})
    )

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("[ok]")
    assert json.loads(out[len("[ok] "):])["total_amount"] == 1800


def test_quote_rejects_unavailable_items(catalog, capsys):
    code = run_quote(
        catalog, json.dumps({"customer_email": "ada@example.com", "items": [{"id": "ghost-item", "quantity": 1}]})
    )

    assert code == 1
    assert capsys.readouterr().out.startswith("[ng] item_unavailable")


def test_quote_rejects_malformed_input(catalog, capsys):
    assert run_quote(catalog, "{not json") == 2
    assert capsys.readouterr().out.startswith("invalid_input")


def test_main_without_command_prints_usage(capsys):
    assert main([]) == 2
    assert "usage" in capsys.readouterr().out
