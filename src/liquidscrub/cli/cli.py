"""CLI entrypoint: Typer app definition and command registration"""

import typer

from liquidscrub.cli.commands import check_cmd, fix_cmd, verify_cmd


app = typer.Typer(
    name="liquidscrub",
    no_args_is_help=True,
    help="Escape Liquid template delimiters inside markdown code blocks",
)

app.command(name="fix")(fix_cmd)
app.command(name="check")(check_cmd)
app.command(name="verify")(verify_cmd)
