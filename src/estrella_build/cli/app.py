import typer

from estrella_build.cli.build import build
from estrella_build.cli.typeinfo import typeinfo

app = typer.Typer(
    name="estrella-build",
    help="Build the estrella bundles and keep typeinfo in sync.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("build")(build)
app.command("typeinfo")(typeinfo)


def main() -> None:
    app()
