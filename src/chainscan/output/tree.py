"""Rich rendering of analysis reports.

Everything here works on the report's dict form, so a freshly computed
report and one loaded from report.json render the same way.
"""

from collections import defaultdict

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

console = Console()

SECTIONS = (
    ("function_client_usages", "Function clients", "magenta"),
    ("service_usages", "Services", "cyan"),
    ("event_publish_usages", "Event publishing", "green"),
)


def _usage_label(section: str, usage: dict) -> Text:
    text = Text()
    if section == "function_client_usages":
        text.append(f"{usage['function_id']}", style="bold magenta")
        text.append(f".{usage['method_name']}({usage['input_type']})")
        if usage.get("has_scheduling"):
            text.append(f" scheduled: {usage.get('scheduling_expression')}", style="dim")
    elif section == "service_usages":
        text.append(f"{usage['service_id']}", style="bold cyan")
        target = usage["target_class"]
        if usage.get("target_method"):
            target = f"{target}.{usage['target_method']}()"
        text.append(f" {usage['usage_type']} {target}")
    else:
        status = usage["topic_status"]
        style = "bold green" if status == "resolved" else "bold yellow"
        text.append(f"{usage['topic_name']}", style=style)
        text.append(f" [{status}]", style="dim")
        if usage.get("message_data_type"):
            text.append(f" {usage['message_data_type']}", style="dim")
    return text


def _location_label(location: dict) -> str:
    return f"{location['file_path']}:{location['line_number']}"


def _add_chains(node: Tree, chains: list[list[dict]]) -> None:
    for index, chain in enumerate(chains, start=1):
        if not chain:
            node.add("[dim]no containing method[/]")
            continue
        chain_node = node.add(f"[dim]chain {index}[/]") if len(chains) > 1 else node
        for entry in chain:
            label = Text(f"{entry['class_name']}.{entry['method_signature']}")
            label.append(f" [{entry['visibility']}, line {entry['line_number']}]", style="dim")
            if entry.get("ambiguous_overload"):
                label.append(" ambiguous overload", style="yellow")
            if entry["is_entry_point"]:
                label.append(" ENTRY POINT", style="bold red")
            chain_node = chain_node.add(label)


def build_report_tree(report: dict, show_chains: bool = False) -> Tree:
    """Usages grouped by category and file, optionally with their call chains."""
    project = report.get("project", "project")
    root = Tree(f"[bold]{project}[/]", guide_style="dim")

    for section, title, color in SECTIONS:
        usages = report.get(section, [])
        section_node = root.add(f"[bold {color}]{title}[/] ({len(usages)})")

        by_file: dict[str, list[dict]] = defaultdict(list)
        for usage in usages:
            by_file[usage["location"]["file_path"]].append(usage)

        for file_path in sorted(by_file):
            file_node = section_node.add(f"[yellow]{file_path}[/]")
            for usage in sorted(by_file[file_path], key=lambda u: u["location"]["line_number"]):
                label = _usage_label(section, usage)
                label.append(f"  line {usage['location']['line_number']}", style="dim")
                usage_node = file_node.add(label)
                if show_chains:
                    _add_chains(usage_node, usage.get("call_chains") or [usage.get("call_chain", [])])

    smart_service = report.get("smart_service")
    if smart_service:
        kind = "UI service" if smart_service["is_ui_service"] else "service"
        smart_node = root.add(
            f"[bold]SmartService[/] {smart_service['service_id']} ({kind}): "
            f"{smart_service['interface_name']}"
        )
        for signature, meta in smart_service.get("function_methods", {}).items():
            smart_node.add(f"{signature} -> id={meta['id']}, name={meta['name']}")

    return root


def build_summary_table(report: dict) -> Table:
    """Counts, timing and warnings of a run."""
    metadata = report.get("metadata", {})
    counts = metadata.get("usage_counts", {})

    table = Table(title="Analysis Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Files scanned", str(metadata.get("total_files_scanned", 0)))
    table.add_row("Classes", str(metadata.get("total_classes_analyzed", 0)))
    table.add_row("Methods", str(metadata.get("total_methods_analyzed", 0)))
    table.add_row("Function client usages", str(counts.get("function_clients", 0)))
    table.add_row("Service usages", str(counts.get("services", 0)))
    table.add_row("Event publish usages", str(counts.get("event_publish", 0)))
    table.add_row("Warnings", str(len(metadata.get("warnings", []))))
    table.add_row("Circular references", "yes" if metadata.get("has_circular_references") else "no")
    table.add_row("Duration", f"{metadata.get('analysis_duration_ms', 0)} ms")
    if metadata.get("had_errors"):
        table.add_row("[red]Errors[/]", "[red]yes[/]")
    return table


def display_tree(tree: Tree) -> None:
    """Display the tree to console."""
    console.print()
    console.print(tree)
    console.print()
