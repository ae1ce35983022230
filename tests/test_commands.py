import pytest

from app.services.github.commands import CommandParser


@pytest.mark.parametrize(
    "body, expected",
    [
        ("@bot try", "try"),
        ("@bot try-merge", "try-merge"),
        ("Looks good. @bot   TRY please", "try"),
        ("@bot\ntry", "try"),
        ("@bot retry", "retry"),
    ],
)
def test_parse_extracts_command(body: str, expected: str) -> None:
    assert CommandParser("bot").parse(body) == expected


@pytest.mark.parametrize(
    "body",
    ["", None, "try this", "@bot", "@robot try", "@botty try", "email me at x@bot"],
)
def test_parse_returns_none_without_command(body) -> None:
    assert CommandParser("bot").parse(body) is None


def test_parse_uses_configured_bot_name() -> None:
    parser = CommandParser("merge-bot")

    assert parser.parse("@merge-bot try") == "try"
    assert parser.parse("@bot try") is None
