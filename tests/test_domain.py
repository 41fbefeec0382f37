import pytest
from decimal import Decimal

from marketdesk.domain.access import can_access_session, session_is_accessible
from marketdesk.domain.entities import ChatSenderType, MessagePage, Principal, UserRole
from marketdesk.domain.errors import ValidationError
from marketdesk.domain.value_objects import (
    MAX_MESSAGE_LENGTH,
    MessageContent,
    OptionTerms,
    Symbol,
    compute_option_profit,
)

OWNER = "owner-1"
ASSIGNED = "admin-assigned"

@pytest.fixture
def terms_args() -> dict:
    return dict(symbol="BTC/USD", amount="100", duration_seconds=60, ror="5", entry_price="50000")

def test_option_terms_parse_valid(terms_args):
    terms = OptionTerms.parse(**terms_args)
    assert terms.symbol.value == "BTC/USD"
    assert terms.amount.value == Decimal("100")
    assert terms.duration_seconds == 60
    assert terms.profit() == Decimal("5.00000000")

@pytest.mark.parametrize("field,value", [
    ("amount", "0"),
    ("amount", "-1"),
    ("amount", "abc"),
    ("ror", "0"),
    ("ror", "100.01"),
    ("duration_seconds", 0),
    ("duration_seconds", 1.5),
    ("duration_seconds", True),
    ("entry_price", "0"),
    ("symbol", "   "),
])
def test_option_terms_rejects_invalid(terms_args, field, value):
    terms_args[field] = value
    with pytest.raises(ValidationError):
        OptionTerms.parse(**terms_args)

def test_ror_upper_bound_is_inclusive(terms_args):
    terms_args["ror"] = "100"
    assert OptionTerms.parse(**terms_args).profit() == Decimal("100.00000000")

def test_symbol_is_trimmed():
    assert Symbol("  ETH/USDT ").value == "ETH/USDT"

def test_compute_option_profit_quantises():
    assert compute_option_profit(Decimal("33.33"), Decimal("7.5")) == Decimal("2.49975000")
    assert compute_option_profit(Decimal("0.00000001"), Decimal("1")) == Decimal("0E-8")

def test_message_content_requires_something():
    with pytest.raises(ValidationError):
        MessageContent.parse("   ", None, "")

def test_message_content_attachment_only():
    content = MessageContent.parse(None, "https://cdn.example.com/a.png")
    assert content.body == ""
    assert content.image_url == "https://cdn.example.com/a.png"

def test_message_content_length_limit():
    MessageContent.parse("x" * MAX_MESSAGE_LENGTH)
    with pytest.raises(ValidationError):
        MessageContent.parse("x" * (MAX_MESSAGE_LENGTH + 1))

@pytest.mark.parametrize("args", [(123,), (0,), ("hi", ["a.png"]), (None, None, {"url": "x"})])
def test_message_content_rejects_non_string_fields(args):
    with pytest.raises(ValidationError):
        MessageContent.parse(*args)

@pytest.mark.parametrize("principal,expected", [
    (Principal(OWNER, UserRole.CUSTOMER), True),
    (Principal("stranger", UserRole.CUSTOMER), False),
    (Principal(ASSIGNED, UserRole.CUSTOMER), True),
    (Principal("any-admin", UserRole.ADMIN), True),
])
def test_access_predicate(principal, expected):
    assert can_access_session(OWNER, ASSIGNED, principal) is expected

def test_access_predicate_without_assignment():
    assert can_access_session(OWNER, None, Principal("stranger", UserRole.CUSTOMER)) is False

def test_missing_session_is_never_accessible():
    assert session_is_accessible(None, Principal("any-admin", UserRole.ADMIN)) is False

def test_sender_type_follows_role():
    assert ChatSenderType.for_role(UserRole.ADMIN) == ChatSenderType.ADMIN
    assert ChatSenderType.for_role(UserRole.CUSTOMER) == ChatSenderType.USER

@pytest.mark.parametrize("total,limit,pages", [(0, 50, 0), (1, 50, 1), (50, 50, 1), (51, 50, 2), (101, 10, 11)])
def test_message_page_total_pages(total, limit, pages):
    assert MessagePage(total=total, limit=limit).total_pages == pages
