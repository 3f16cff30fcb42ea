"""Main CLI application using Cyclopts."""

import cyclopts

from gatehouse.cli.commands import server

app = cyclopts.App(
    name="gatehouse",
    help="Gatehouse - federated sign-in and session credential issuance",
)

app.command(server.serve, name="serve")
app.command(server.migrate, name="migrate")


if __name__ == "__main__":
    app()
