import json

from stackplan.compiler.instructions import (
    Blank,
    Comment,
    Copy,
    From,
    Run,
    copy_command,
    copy_from_command,
    exec_command,
    render_recipe,
)


def test_copy_command_is_empty_for_no_files() -> None:
    assert copy_command([]) == ""


def test_copy_command_joins_files() -> None:
    assert copy_command(["a", "b"]) == "COPY a b /app/"
    assert copy_command(["a", "b"], "app") == "COPY a b app"


def test_copy_from_command_defaults_to_whole_app_dir() -> None:
    assert copy_from_command("0", []) == "COPY --from=0 /app/ /app/"


def test_copy_from_command_names_each_file() -> None:
    assert copy_from_command("0", ["file1", "file2"], "app") == "COPY --from=0 file1 file2 app"
    assert copy_from_command("0", ["./out"]) == "COPY --from=0 /app/out /app/"


def test_exec_command_simple() -> None:
    assert exec_command("command1") == 'CMD ["command1"]'


def test_exec_command_escapes_quotes() -> None:
    assert exec_command('command with -l "asdf"') == 'CMD ["command with -l \\"asdf\\""]'


def test_exec_command_payload_parses_back() -> None:
    command = 'bash -c "echo \\"$PORT\\" && run"'
    rendered = exec_command(command)
    assert json.loads(rendered.removeprefix("CMD ")) == [command]


def test_run_renders_mounts_without_double_spaces() -> None:
    assert Run("make").render() == "RUN make"
    assert Run("make", ("--mount=a", "--mount=b")).render() == "RUN --mount=a --mount=b make"


def test_render_recipe_drops_empty_copies_and_collapses_blanks() -> None:
    recipe = render_recipe(
        [
            From("base"),
            Blank(),
            Blank(),
            Comment("Build"),
            Copy(()),
            Run("make"),
            Blank(),
        ]
    )
    assert recipe == "FROM base\n\n# Build\nRUN make\n"
