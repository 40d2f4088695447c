import pytest

from moviebuzz import identifiers
from moviebuzz.core import errors
from moviebuzz.core.config import settings


class TestEmailIdentifier:
    channel = identifiers.EmailIdentifier()

    def test_normalizes_case_and_whitespace(self):
        assert self.channel.validate('  Alice@X.com ') == 'alice@x.com'

    @pytest.mark.parametrize('value', ['', 'alice', 'alice@', '@x.com', 'a b@x.com'])
    def test_rejects_bad_addresses(self, value):
        with pytest.raises(errors.ValidationError):
            self.channel.validate(value)


class TestMobileIdentifier:
    channel = identifiers.MobileIdentifier()

    def test_strips_separators_and_plus(self):
        assert self.channel.validate('+1 (415) 555-0100') == '14155550100'

    @pytest.mark.parametrize('value', ['', '12345', '555-CALL-NOW', '1' * 16, '\u0661' * 10])
    def test_rejects_bad_numbers(self, value):
        with pytest.raises(errors.ValidationError):
            self.channel.validate(value)


def test_current_identifier_follows_settings(monkeypatch):
    assert identifiers.current_identifier().kind == 'email'
    monkeypatch.setattr(settings, 'IDENTIFIER_KIND', 'mobile')
    assert identifiers.current_identifier().kind == 'mobile'
