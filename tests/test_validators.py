from utils.validators import (
    sanitize_input,
    validate_generation,
    validate_identifier,
    validate_search_query,
)


class TestValidators:
    def test_sanitize_input(self):
        assert sanitize_input("  mr-mime!?/ ") == "mr-mime"
        assert sanitize_input("") == ""

    def test_valid_identifiers(self):
        assert validate_identifier("25") == (True, None)
        assert validate_identifier("charizard-mega-x") == (True, None)

    def test_invalid_identifiers(self):
        assert validate_identifier("")[0] is False
        assert validate_identifier("0")[0] is False
        assert validate_identifier("bulba_saur")[0] is False
        assert validate_identifier("a" * 51)[0] is False

    def test_generation_forms(self):
        assert validate_generation("3") == (True, None, 3)
        assert validate_generation("gen3") == (True, None, 3)
        assert validate_generation("Generation-3") == (True, None, 3)

    def test_generation_out_of_range(self):
        is_valid, error, number = validate_generation("10")
        assert is_valid is False
        assert "between 1 and 9" in error
        assert number is None

    def test_generation_garbage(self):
        assert validate_generation("first")[0] is False
        assert validate_generation("")[0] is False

    def test_search_query_normalized(self):
        assert validate_search_query("Mr Mime") == (True, None, "mr-mime")

    def test_search_query_empty(self):
        assert validate_search_query("!!!")[0] is False
