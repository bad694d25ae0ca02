import pytest

from extensions.completion import generate_completion_script, get_suggestions
from extensions.errors import UsageError
from extensions.resolver import merge_roots


@pytest.fixture
def table(make_tree):
    root = make_tree(
        "ext",
        {
            "gen/uuid.sh": "",
            "gen/uuid.yaml": {"description": "Make a UUID"},
            "deploy.sh": "",
            "deploy.yaml": {
                "options": [
                    {"name": "env", "short": "e", "suggestions": ["dev", "prod"]},
                    {"name": "force", "type": "boolean", "description": "Skip checks"},
                ]
            },
        },
    )
    return merge_roots([root])


def _texts(suggestions):
    return [suggestion.text for suggestion in suggestions]


def test_top_level_names(table):
    assert _texts(get_suggestions(table, [])) == ["deploy", "gen"]


def test_namespace_children_with_descriptions(table):
    suggestions = get_suggestions(table, ["gen"])

    assert _texts(suggestions) == ["uuid"]
    assert suggestions[0].description == "Make a UUID"


def test_leaf_options(table):
    suggestions = get_suggestions(table, ["deploy"])

    assert _texts(suggestions) == ["--env", "-e", "--force"]
    assert all(suggestion.kind == "option" for suggestion in suggestions)


def test_option_value_suggestions(table):
    assert _texts(get_suggestions(table, ["deploy", "--env"])) == ["dev", "prod"]
    assert _texts(get_suggestions(table, ["deploy", "-e"])) == ["dev", "prod"]


def test_completion_markers_are_ignored(table):
    assert _texts(get_suggestions(table, ["--complete", "--", "gen"])) == ["uuid"]


def test_unknown_path_has_no_suggestions(table):
    assert get_suggestions(table, ["nope"]) == []


@pytest.mark.parametrize(
    "shell,marker",
    [("bash", "complete -F"), ("zsh", "#compdef rc"), ("fish", "complete -c rc")],
)
def test_completion_scripts(shell, marker):
    assert marker in generate_completion_script(shell)


def test_unsupported_shell():
    with pytest.raises(UsageError, match="Unsupported shell"):
        generate_completion_script("tcsh")
