"""Command-line interface for Clause Weaver clause management and document editing."""

import json
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from clause_weaver.catalog import CatalogError, ClauseCatalog, load_clause_file
from clause_weaver.codec import ValidationError, load_document
from clause_weaver.injector import add_clause
from clause_weaver.locator import find_placeholders
from clause_weaver.log import configure_logging
from clause_weaver.remover import remove_clause
from clause_weaver.templates import identify_placeholders, process_templates

CONFIG_DIR = Path.home() / ".clause_weaver"
ENV_FILE = CONFIG_DIR / ".env"
CLAUSES_DIR = CONFIG_DIR / "clauses"

console = Console()
err_console = Console(stderr=True)


def _catalog() -> ClauseCatalog:
    """Load the clause catalog, turning invalid files into a CLI error."""
    try:
        return ClauseCatalog(CLAUSES_DIR).load()
    except CatalogError as e:
        raise click.ClickException(str(e))


def _catalog_clause(clause_id: str):
    clause = _catalog().get(clause_id)
    if clause is None:
        raise click.ClickException(f"Clause '{clause_id}' not found.")
    return clause


def _write_result(content: str, output):
    """Write a document to OUTPUT, or to stdout if no output path was given."""
    if output:
        Path(output).write_text(content)
        console.print(f"[green]✓[/green] Saved to [bold]{output}[/bold]")
    else:
        click.echo(content)


@click.group()
@click.option("--log-level", default=None, help="Log level (default: $CLAUSE_WEAVER_LOG_LEVEL or WARNING).")
def cli(log_level):
    """Clause Weaver: insert, remove and fill clauses in editor documents."""
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE, override=False)
    try:
        configure_logging(level=log_level)
    except ValueError as e:
        raise click.ClickException(str(e))


@cli.group()
def config():
    """Manage Clause Weaver configuration."""


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key, value):
    """Store a KEY=VALUE pair in ~/.clause_weaver/.env."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    # Read existing entries, update or append
    entries: dict[str, str] = {}
    if ENV_FILE.exists():
        for line in ENV_FILE.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                k, v = line.split("=", 1)
                entries[k.strip()] = v.strip()

    entries[key] = value
    ENV_FILE.write_text(
        "\n".join(f"{k}={v}" for k, v in entries.items()) + "\n"
    )
    ENV_FILE.chmod(0o600)
    console.print(f"[green]✓[/green] Saved {key} to {ENV_FILE}")


@config.command("show")
def config_show():
    """Print stored config keys with masked values."""
    if not ENV_FILE.exists():
        console.print("[dim]No config file found.[/dim]")
        return

    table = Table(title="Config", show_header=True, border_style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    for line in ENV_FILE.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            masked = v.strip()[:4] + "****" if len(v.strip()) > 4 else "****"
            table.add_row(k.strip(), masked)

    console.print(table)


@cli.group()
def clause():
    """Manage the clause catalog."""


@clause.command("list")
@click.option("--search", "term", default=None, help="Only show clauses whose name contains TERM.")
def clause_list(term):
    """List all saved clauses."""
    catalog = _catalog()
    clauses = catalog.search(term) if term else list(catalog)
    if not clauses:
        console.print("[dim]No clauses found.[/dim]")
        return
    table = Table(title="Clauses", border_style="dim")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Identifying text", style="dim")
    for item in clauses:
        table.add_row(item.id, item.display_name, item.identifying_text)
    console.print(table)


@clause.command("add")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def clause_add(file):
    """Validate a clause JSON file and store it in the catalog."""
    try:
        new_clause = load_clause_file(Path(file))
    except CatalogError as e:
        console.print(f"[red]✗[/red] {e}")
        raise SystemExit(1)

    try:
        load_document(new_clause.content_fragment)
    except ValidationError as e:
        console.print(f"[red]✗[/red] Clause content is not a valid document: {e}")
        raise SystemExit(1)

    catalog = _catalog()
    if catalog.add(new_clause):
        console.print(f"[yellow]Clause '{new_clause.id}' already exists. Overwriting.[/yellow]")
    console.print(f"[green]✓[/green] Clause '{new_clause.id}' added.")


@clause.command("show")
@click.argument("clause_id")
def clause_show(clause_id):
    """Print a clause definition."""
    item = _catalog_clause(clause_id)
    body = json.dumps(item.model_dump(by_alias=True), indent=2)
    console.print(Panel(body, title=item.display_name, border_style="dim"))


@clause.command("remove")
@click.argument("clause_id")
def clause_remove(clause_id):
    """Delete a clause from the catalog."""
    try:
        removed = ClauseCatalog(CLAUSES_DIR).remove(clause_id)
    except CatalogError as e:
        raise click.ClickException(str(e))
    if not removed:
        raise click.ClickException(f"Clause '{clause_id}' not found.")
    console.print(f"[green]✓[/green] Clause '{clause_id}' removed.")


def _read_document(file):
    """Read FILE and check its structure, exiting with status 1 if it is invalid.

    Returns:
        The raw content and the parsed `Document`.
    """
    content = Path(file).read_text()
    try:
        return content, load_document(content)
    except ValidationError as e:
        console.print(Panel(str(e), title=f"[red]✗ {file} is not a valid document[/red]", border_style="red"))
        raise SystemExit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--preview", is_flag=True, help="Also print the body text, one line per block.")
def validate(file, preview):
    """Check that FILE is a structurally valid document."""
    _, document = _read_document(file)

    blocks = sum(len(section.blocks) for section in document.sections)
    runs = sum(len(block.runs) for section in document.sections for block in section.blocks)
    console.print(f"[green]✓[/green] {file} is a valid document.")
    console.print(f"  Sections: [cyan]{len(document.sections)}[/cyan]")
    console.print(f"  Blocks: [cyan]{blocks}[/cyan]")
    console.print(f"  Runs: [cyan]{runs}[/cyan]")
    console.print(f"  Placeholders: [cyan]{len(find_placeholders(document))}[/cyan]")
    if preview:
        console.print(Panel(Text(document.preview()), title="Preview", border_style="dim"))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def placeholders(file):
    """List the distinct placeholder names in FILE."""
    content, _ = _read_document(file)
    names = identify_placeholders(content)
    if not names:
        console.print("[dim]No placeholders found.[/dim]")
        return
    table = Table(title="Placeholders", show_header=False, border_style="dim")
    table.add_column("Name", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


def _parse_values(pairs) -> dict[str, str]:
    values = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected NAME=VALUE, got '{pair}'.", param_hint="--value")
        name, value = pair.split("=", 1)
        values[name.strip()] = value
    return values


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--value", "pairs", multiple=True, help="Placeholder value as NAME=VALUE. Repeatable.")
@click.option("--values-file", default=None, type=click.Path(exists=True, dir_okay=False), help="JSON object of placeholder values.")
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Write the result here instead of stdout.")
def fill(file, pairs, values_file, output):
    """Replace placeholders in FILE with the given values."""
    values = {}
    if values_file:
        try:
            loaded = json.loads(Path(values_file).read_text())
        except json.JSONDecodeError as e:
            raise click.ClickException(f"--values-file is not valid JSON: {e}")
        if not isinstance(loaded, dict):
            raise click.ClickException("--values-file must contain a JSON object.")
        values.update({str(k): str(v) for k, v in loaded.items()})
    values.update(_parse_values(pairs))
    if not values:
        raise click.ClickException("Provide at least one --value or --values-file.")

    content, _ = _read_document(file)
    result = process_templates(content, values)
    if result == content:
        err_console.print("[yellow]No placeholders were filled.[/yellow]")
    _write_result(result, output)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("clause_id")
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Write the result here instead of stdout.")
def insert(file, clause_id, output):
    """Insert catalog clause CLAUSE_ID into FILE."""
    item = _catalog_clause(clause_id)
    content = Path(file).read_text()
    result = add_clause(content, item)
    if result == content:
        raise click.ClickException(f"Clause '{clause_id}' could not be inserted.")
    _write_result(result, output)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("clause_id")
@click.option("--output", default=None, type=click.Path(dir_okay=False), help="Write the result here instead of stdout.")
def remove(file, clause_id, output):
    """Remove catalog clause CLAUSE_ID from FILE."""
    item = _catalog_clause(clause_id)
    content = Path(file).read_text()
    result = remove_clause(content, item)
    if result == content:
        raise click.ClickException(f"Clause '{clause_id}' was not found in {file}.")
    _write_result(result, output)
