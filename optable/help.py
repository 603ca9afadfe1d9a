"""
Help rendering.

Sections, in order (empty ones are skipped):

    Usage:
        prog [command]                       (root help of a program with commands)
        prog [command] [options] POSITIONALS
    <description>
    Available commands:                      (root help only)
    Available options:                       (reachable named options, then -h --help)
    Positional options:
    Examples:
    Use `prog [command] --help` to get help for a specific command

Only options reachable in the rendered scope are listed.
"""
import sys
from collections import defaultdict

from rich.console import Console, Group
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .options import Kind, Scope, reachable


def render_help(
        options,
        commands=(),
        examples=(),
        /,
        *,
        command=None,
        prog,
        descr=None,
        help_descr="Show this help menu",
        stream=None,
        colorful=False,
        fancy=False
):
    """
    Render help for the root (command=None) or the named command.

    Palette keys
    - section-label, program-name, command-name, positional-name
    - option-name, metavar, description, example, footer
    - panel-title

    Customization
    - Define a mapping named __styles__ in __main__ to override any palette entry.
    - When colorful is False, styling is suppressed.
    """
    console = Console(file=stream if stream is not None else sys.stderr, highlight=False)
    styles = defaultdict(str, {
        "section-label": "bold #FFFFFF",  # white headers
        "program-name": "bold #FF4D94",  # magenta-pink brand pop
        "command-name": "bold #36C5F0",  # sky-blue commands
        "positional-name": "bold #FFD600",  # amber positionals
        "option-name": "bold #00E6FF",  # cyan options
        "metavar": "#FFD600",  # amber parameters
        "description": "#9CA3AF",  # muted gray
        "example": "#E5E7EB",
        "footer": "#737373",  # dim footer gray
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), style)

    def label(name):
        return text(name, styler("section-label")).append(":")

    def grid():
        return Table.grid(padding=(0, 2))

    if command is None:
        active = Scope.ROOT
    else:
        active = next(Scope.command(index) for index, candidate in enumerate(commands) if candidate.name == command)

    visible = [option for option in options if reachable(option, active)]
    named = [option for option in visible if not option.positional]
    positionals = [option for option in visible if option.positional]

    renders = []

    # Usage lines
    usage = grid()
    if commands and command is None:
        usage.add_row(Text.assemble(text(prog, styler("program-name")), " [command]"))
    line = Text.assemble(text(prog, styler("program-name")))
    if command is not None:
        line.append(" ").append(text(command, styler("command-name")))
    line.append(" [options]")
    for option in positionals:
        line.append(" ").append(text(option.long, styler("positional-name")))
    usage.add_row(line)
    renders.append(label("Usage"))
    renders.append(Padding(usage, (0, 0, 0, 4)))

    if descr:
        renders.append(Text(""))
        renders.append(text(descr, styler("description")))

    # Commands table (root only)
    if commands and command is None:
        table = grid()
        for candidate in commands:
            table.add_row(text(candidate.name, styler("command-name")), text(candidate.descr, styler("description")))
        renders.append(Text(""))
        renders.append(label("Available commands"))
        renders.append(Padding(table, (0, 0, 0, 4)))

    # Named options, then the built-in help option
    table = grid()
    for option in named:
        name = text("--" + option.long, styler("option-name"))
        if option.metavar is not None and option.kind is not Kind.BOOLEAN:
            name.append(" ").append(text("<%s>" % option.metavar, styler("metavar")))
        table.add_row(
            text("-" + option.short if option.short else "", styler("option-name")),
            name,
            text(option.descr, styler("description")),
        )
    table.add_row(text("-h", styler("option-name")), text("--help", styler("option-name")), text(help_descr, styler("description")))
    renders.append(Text(""))
    renders.append(label("Available options"))
    renders.append(Padding(table, (0, 0, 0, 4)))

    if positionals:
        table = grid()
        for option in positionals:
            table.add_row(text(option.long, styler("positional-name")), text(option.descr, styler("description")))
        renders.append(Text(""))
        renders.append(label("Positional options"))
        renders.append(Padding(table, (0, 0, 0, 4)))

    if examples:
        table = grid()
        for example in examples:
            table.add_row(
                Text.assemble(text(prog, styler("program-name")), " ", text(example.usage, styler("example"))),
                text(example.descr, styler("description")),
            )
        renders.append(Text(""))
        renders.append(label("Examples"))
        renders.append(Padding(table, (0, 0, 0, 4)))

    if commands:
        renders.append(Text(""))
        renders.append(text("Use `%s [command] --help` to get help for a specific command" % prog, styler("footer")))

    renderable = Group(*renders)

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{prog} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


__all__ = (
    "render_help",
)
