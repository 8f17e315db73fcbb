"""Password strength rules used by complete-setup."""

from app.application.services.password_policy import validate_password_strength


def test_strong_password_has_no_violations() -> None:
    assert validate_password_strength("Abc123$5") == []


def test_missing_symbol_is_the_only_violation() -> None:
    assert validate_password_strength("Abc12345") == [
        "Debe incluir al menos 1 caracter especial (!@#$%^&*...)"
    ]


def test_every_rule_reported() -> None:
    violations = validate_password_strength("abc")
    assert violations == [
        "Debe tener al menos 8 caracteres",
        "Debe incluir al menos 1 número",
        "Debe incluir al menos 1 mayúscula",
        "Debe incluir al menos 1 caracter especial (!@#$%^&*...)",
    ]


def test_empty_password_fails_all_rules() -> None:
    assert len(validate_password_strength("")) == 5


def test_brackets_and_quotes_count_as_symbols() -> None:
    assert validate_password_strength("Abcdefg1[") == []
    assert validate_password_strength('Abcdefg1"') == []
    assert validate_password_strength("Abcdefg1\\") == []


def test_only_ascii_digits_count_as_numbers() -> None:
    assert validate_password_strength("Abcdefg٣$") == ["Debe incluir al menos 1 número"]
    assert validate_password_strength("Abcdefg３$") == ["Debe incluir al menos 1 número"]
