"""``ModCommand``: a click command that carries sample invocations.

``modctl <command> --examples`` prints them and exits, keeping ``--help``
short.  Under the global ``--json`` flag the examples are printed as a
JSON document instead.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import click

EXAMPLES_HINT = "Run with --examples for sample invocations."


class ModCommand(click.Command):
    """Click command with an eager ``--examples`` flag."""

    def __init__(self, *args: Any, examples: Sequence[str] = (), **kwargs: Any) -> None:
        self.examples = tuple(examples)
        if self.examples:
            kwargs.setdefault("epilog", EXAMPLES_HINT)
        super().__init__(*args, **kwargs)
        if self.examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show sample invocations and exit.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        if getattr(ctx.obj, "json_output", False):
            payload = {"command": ctx.command_path, "examples": list(self.examples)}
            click.echo(json.dumps(payload, indent=2))
        else:
            click.echo(f"Examples for '{ctx.command_path}':\n")
            for line in self.examples:
                click.echo(f"  $ {line}")
        ctx.exit(0)
