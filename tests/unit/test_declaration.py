"""Unit tests for the middleware declaration builder and parser."""

import pytest

from builders import ReCaptchaDeclaration, parse_declaration
from errors import ConfigurationError
from schemas.models.challenge import ChallengeVariant


class TestBuilderV2:
    @pytest.mark.parametrize(
        "factory, expected",
        [
            (ReCaptchaDeclaration.checkbox, "recaptcha:checkbox"),
            (ReCaptchaDeclaration.invisible, "recaptcha:invisible"),
            (ReCaptchaDeclaration.android, "recaptcha:android"),
        ],
        ids=["checkbox", "invisible", "android"],
    )
    def test_variants(self, factory, expected):
        assert factory().to_string() == expected

    def test_remember_default_minutes(self):
        assert str(ReCaptchaDeclaration.checkbox().remember()) == "recaptcha:checkbox,10"

    def test_remember_default_from_config(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_REMEMBER_MINUTES", "30")
        assert str(ReCaptchaDeclaration.checkbox().remember()) == "recaptcha:checkbox,30"

    def test_remember_custom(self):
        assert str(ReCaptchaDeclaration.invisible().remember(5)) == "recaptcha:invisible,5"

    def test_remember_forever(self):
        assert str(ReCaptchaDeclaration.checkbox().remember_forever()) == "recaptcha:checkbox,inf"

    def test_dont_remember(self):
        assert str(ReCaptchaDeclaration.checkbox().dont_remember()) == "recaptcha:checkbox,false"

    def test_input_keeps_null_remember_slot(self):
        assert (
            str(ReCaptchaDeclaration.checkbox().input("captcha"))
            == "recaptcha:checkbox,null,captcha"
        )

    def test_guards_keep_interior_nulls(self):
        assert (
            str(ReCaptchaDeclaration.checkbox().for_guests("web", "api"))
            == "recaptcha:checkbox,null,null,web,api"
        )

    def test_for_guests_without_names_uses_default_guard(self):
        assert (
            str(ReCaptchaDeclaration.android().for_guests())
            == "recaptcha:android,null,null,null"
        )

    @pytest.mark.parametrize("setter", ["threshold", "action"])
    def test_score_setters_rejected(self, setter):
        with pytest.raises(ConfigurationError, match=setter):
            getattr(ReCaptchaDeclaration.checkbox(), setter)(0.5 if setter == "threshold" else "login")


class TestBuilderScore:
    def test_default_threshold(self):
        assert str(ReCaptchaDeclaration.score()) == "recaptcha.score:0.5"

    def test_default_threshold_from_config(self, monkeypatch):
        monkeypatch.setenv("RECAPTCHA_THRESHOLD", "0.8")
        assert str(ReCaptchaDeclaration.score()) == "recaptcha.score:0.8"

    @pytest.mark.parametrize(
        "threshold, expected",
        [(1.7, "1.0"), (-9, "0.0"), (0.34, "0.3"), (0.66, "0.7"), (0.25, "0.3"), (0.35, "0.4")],
        ids=["above", "below", "round_down", "round_up", "half_up", "half_up_odd"],
    )
    def test_threshold_is_clamped_and_formatted(self, threshold, expected):
        assert str(ReCaptchaDeclaration.score(threshold)) == f"recaptcha.score:{expected}"

    def test_action_and_input(self):
        declaration = ReCaptchaDeclaration.score(0.7).action("login").input("token")
        assert str(declaration) == "recaptcha.score:0.7,login,token"

    def test_input_keeps_null_action(self):
        assert (
            str(ReCaptchaDeclaration.score().input("token"))
            == "recaptcha.score:0.5,null,token"
        )

    def test_guards(self):
        assert (
            str(ReCaptchaDeclaration.score().for_guests("web"))
            == "recaptcha.score:0.5,null,null,web"
        )

    @pytest.mark.parametrize("setter", ["remember", "remember_forever", "dont_remember"])
    def test_v2_setters_rejected(self, setter):
        with pytest.raises(ConfigurationError, match=setter):
            getattr(ReCaptchaDeclaration.score(), setter)()


class TestParser:
    def test_parses_alias_and_parameters(self):
        parsed = parse_declaration("recaptcha:checkbox,10,captcha,web")
        assert parsed.alias == "recaptcha"
        assert parsed.parameters == ["checkbox", "10", "captcha", "web"]

    def test_alias_without_parameters(self):
        parsed = parse_declaration("recaptcha.confirm")
        assert parsed.parameters == []
        assert parsed.route == "null"

    def test_unknown_alias(self):
        with pytest.raises(ConfigurationError):
            parse_declaration("captcha:checkbox")

    def test_v2_without_variant(self):
        with pytest.raises(ConfigurationError):
            parse_declaration("recaptcha").variant

    def test_confirm_route_and_guards(self):
        parsed = parse_declaration("recaptcha.confirm:/confirm,web")
        assert parsed.route == "/confirm"
        assert parsed.guards == ["web"]

    @pytest.mark.parametrize(
        "builder",
        [
            lambda: ReCaptchaDeclaration.checkbox(),
            lambda: ReCaptchaDeclaration.invisible().remember(15).input("captcha"),
            lambda: ReCaptchaDeclaration.android().dont_remember().for_guests("web", "api"),
            lambda: ReCaptchaDeclaration.checkbox().for_guests(),
        ],
        ids=["bare", "remember_input", "guards", "default_guard"],
    )
    def test_v2_round_trip(self, builder):
        declaration = builder()
        parsed = parse_declaration(str(declaration))
        assert parsed.variant is declaration.variant
        assert parsed.parameters == declaration.parameters()[1 : len(parsed.parameters) + 1]
        assert parsed.guards == declaration._guards

    def test_score_round_trip(self):
        declaration = ReCaptchaDeclaration.score(0.9).action("checkout").input("token").for_guests("web", "admin")
        parsed = parse_declaration(str(declaration))
        assert parsed.variant is ChallengeVariant.SCORE
        assert parsed.threshold == 0.9
        assert parsed.action == "checkout"
        assert parsed.input == "token"
        assert parsed.guards == ["web", "admin"]

    def test_trimmed_slots_parse_as_null(self):
        parsed = parse_declaration(str(ReCaptchaDeclaration.score(0.2)))
        assert parsed.threshold == 0.2
        assert parsed.action is None
        assert parsed.input == "null"
        assert parsed.guards == []
