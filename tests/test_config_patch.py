import pytest

from bundlebench.runner.config_patch import (
    apply_overrides,
    clean_build_file,
    clear_overrides,
    find_options_object,
    patch_build_file,
    read_build_file,
    to_js,
)
from bundlebench.runner.errors import ConfigPatchError


CLASSIC = """'use strict';

const EmberApp = require('ember-cli/lib/broccoli/ember-app');

module.exports = function (defaults) {
  let app = new EmberApp(defaults, {
    'ember-cli-terser': {},
    hinting: false,
  });

  return app.toTree();
};
"""

TERSER_OPTIONS = {"terser": {"compress": {"sequences": False}, "output": {"semicolons": False}}}


def test_to_js_matches_json_stringify():
    assert to_js(TERSER_OPTIONS) == '{"terser":{"compress":{"sequences":false},"output":{"semicolons":false}}}'
    assert to_js({}) == "{}"


def test_apply_replaces_only_the_property_value():
    out = apply_overrides(CLASSIC, {"ember-cli-terser": TERSER_OPTIONS})
    expected = CLASSIC.replace("'ember-cli-terser': {}", "'ember-cli-terser': " + to_js(TERSER_OPTIONS))
    assert out == expected


def test_apply_identifier_key():
    out = apply_overrides(CLASSIC, {"hinting": True})
    assert out == CLASSIC.replace("hinting: false", "hinting: true")


def test_clear_after_apply_restores_empty_values():
    patched = apply_overrides(CLASSIC, {"ember-cli-terser": TERSER_OPTIONS})
    assert clear_overrides(patched, ["ember-cli-terser"]) == CLASSIC


def test_clear_matches_applying_empty_objects():
    overrides = {"ember-cli-terser": TERSER_OPTIONS, "hinting": True}
    patched = apply_overrides(CLASSIC, overrides)
    cleared = clear_overrides(patched, overrides.keys())
    assert cleared == apply_overrides(CLASSIC, {k: {} for k in overrides})


def test_missing_key_is_inserted_after_last_property():
    out = apply_overrides(CLASSIC, {"fingerprint": {"enabled": False}})
    assert "    hinting: false,\n    'fingerprint': {\"enabled\":false},\n  });" in out
    # still parses with the same single call
    find_options_object(out)


def test_missing_key_into_empty_object():
    src = "var app = new EmberApp(defaults, {});\n"
    out = apply_overrides(src, {"ember-cli-terser": {}})
    assert out == "var app = new EmberApp(defaults, { 'ember-cli-terser': {} });\n"


def test_missing_key_on_single_line_object():
    src = "var app = new EmberApp(defaults, { hinting: false });\n"
    out = apply_overrides(src, {"a": 1, "b": [1, 2]})
    assert out == "var app = new EmberApp(defaults, { hinting: false, 'a': 1, 'b': [1,2] });\n"


def test_missing_key_strict_raises():
    with pytest.raises(ConfigPatchError, match="fingerprint"):
        apply_overrides(CLASSIC, {"fingerprint": {}}, strict=True)


def test_clear_missing_key_is_noop():
    assert clear_overrides(CLASSIC, ["fingerprint"]) == CLASSIC


def test_empty_overrides_leave_source_untouched():
    assert apply_overrides(CLASSIC, {}) == CLASSIC
    assert clear_overrides(CLASSIC, []) == CLASSIC


def test_nested_properties_with_same_key_are_not_touched():
    src = "new EmberApp(defaults, { babel: { 'ember-cli-terser': 1 }, 'ember-cli-terser': {} });\n"
    out = apply_overrides(src, {"ember-cli-terser": {"enabled": True}})
    assert out == "new EmberApp(defaults, { babel: { 'ember-cli-terser': 1 }, 'ember-cli-terser': {\"enabled\":true} });\n"


def test_module_syntax_build_file():
    src = (
        "import EmberApp from 'ember-cli/lib/broccoli/ember-app';\n"
        "\n"
        "export default function (defaults) {\n"
        "  const app = new EmberApp(defaults, { hinting: false });\n"
        "  return app.toTree();\n"
        "}\n"
    )
    out = apply_overrides(src, {"hinting": True})
    assert out == src.replace("hinting: false", "hinting: true")


@pytest.mark.parametrize("src, match", [
    ("module.exports = function () { return 1; };\n", "No `new EmberApp"),
    ("new EmberApp(a, {});\nnew EmberApp(b, {});\n", "found 2"),
    ("new EmberApp(defaults);\n", "exactly one object literal"),
    ("new EmberApp(defaults, {}, {});\n", "exactly one object literal"),
    ("new EmberApp(defaults, {\n", "Could not parse"),
])
def test_unexpected_shapes_raise(src, match):
    with pytest.raises(ConfigPatchError, match=match):
        apply_overrides(src, {"hinting": True})


def test_other_constructor_name():
    src = "const app = new Funnel('app', { include: [] });\n"
    out = apply_overrides(src, {"include": ["*.js"]}, constructor="Funnel")
    assert out == "const app = new Funnel('app', { include: [\"*.js\"] });\n"


def test_file_round_trip_keeps_crlf(tmp_path):
    path = tmp_path / "ember-cli-build.js"
    path.write_bytes(CLASSIC.replace("\n", "\r\n").encode())
    patch_build_file(path, {"ember-cli-terser": TERSER_OPTIONS})
    assert b"\r\n" in path.read_bytes()
    assert b'"sequences":false' in path.read_bytes()
    clean_build_file(path, ["ember-cli-terser"])
    assert path.read_bytes() == CLASSIC.replace("\n", "\r\n").encode()


def test_failed_patch_leaves_file_untouched(tmp_path):
    path = tmp_path / "ember-cli-build.js"
    path.write_text(CLASSIC)
    with pytest.raises(ConfigPatchError):
        patch_build_file(path, {"fingerprint": {}}, strict=True)
    assert read_build_file(path) == CLASSIC
    assert [p.name for p in tmp_path.iterdir()] == ["ember-cli-build.js"]


MODERN = """'use strict';

const EmberApp = require('ember-cli/lib/broccoli/ember-app');

module.exports = function (defaults) {
  const project = defaults?.project;
  let app = new EmberApp(defaults, {
    hinting: process.env.CI ?? false,
    'ember-cli-terser': {},
  });

  return app.toTree();
};
"""


def test_nullish_and_optional_chaining_build_file():
    out = apply_overrides(MODERN, {"ember-cli-terser": {"enabled": False}})
    assert out == MODERN.replace("'ember-cli-terser': {}", "'ember-cli-terser': {\"enabled\":false}")
    assert clear_overrides(out, ["ember-cli-terser"]) == MODERN


def test_replace_nullish_value():
    out = apply_overrides(MODERN, {"hinting": True})
    assert "    hinting: true,\n" in out
    assert "defaults?.project" in out


def test_shorthand_property_is_expanded():
    src = "const fingerprint = {};\nnew EmberApp(defaults, { fingerprint, hinting: false });\n"
    out = apply_overrides(src, {"fingerprint": {"enabled": False}})
    assert out == src.replace("{ fingerprint,", "{ fingerprint: {\"enabled\":false},")
    cleared = clear_overrides(out, ["fingerprint"])
    assert "{ fingerprint: {}, hinting: false }" in cleared


def test_parse_error_names_the_line():
    src = "module.exports = function (defaults) {\n  let app = new EmberApp(defaults, {\n"
    with pytest.raises(ConfigPatchError, match="line"):
        apply_overrides(src, {"hinting": True})


def test_non_ascii_source_is_preserved():
    src = "// café\nnew EmberApp(defaults, { title: 'héllo', hinting: false });\n"
    out = apply_overrides(src, {"hinting": True})
    assert out == src.replace("hinting: false", "hinting: true")
