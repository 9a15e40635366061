import pytest

from spinline.expand import expand_env, render_args


class TestExpandEnv:
    def test_braced_and_bare(self):
        env = {"WHO": "world", "GREETING": "hello"}
        assert expand_env("$GREETING ${WHO}", env) == "hello world"

    def test_unknown_names_are_empty(self):
        assert expand_env("a${MISSING}b$ALSO_MISSING", {}) == "ab"

    def test_lone_dollar_is_kept(self):
        assert expand_env("cost: $ 5", {}) == "cost: $ 5"

    def test_idempotent_without_tokens(self):
        text = "plain text, no tokens"
        assert expand_env(expand_env(text, {})) == text

    def test_uses_process_environment(self, monkeypatch):
        monkeypatch.setenv("SPINLINE_TEST_VALUE", "42")
        assert expand_env("v=$SPINLINE_TEST_VALUE") == "v=42"


class TestRenderArgs:
    def test_renders_with_context(self):
        assert render_args(["{{ name }}-x", "plain"], {"name": "build"}) == ["build-x", "plain"]

    def test_keeps_order_and_count(self):
        args = ["c", "b", "a", ""]
        assert render_args(args, {}) == args

    def test_undefined_name_fails(self):
        with pytest.raises(Exception):
            render_args(["{{ nope }}"], {})

    def test_on_error_maps_exception(self):
        class Boom(Exception):
            pass

        with pytest.raises(Boom) as info:
            render_args(["{{ oops"], {}, on_error=lambda arg, e: Boom(arg))
        assert info.value.args == ("{{ oops",)
