#!/usr/bin/env python3
"""
medterm CLI Interface
Command-line interface for term standardization, annotation and schema generation
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .core.config import MedTermConfig, default_config
from .core.engine import TerminologyEngine
from .core.exceptions import MedTermException

console = Console()


class MedTermCLI:
    """Command-line interface for the medterm engine"""

    def __init__(self, config: Optional[MedTermConfig] = None, as_json: bool = False):
        self.config = config or default_config
        self.engine = TerminologyEngine(self.config)
        self.as_json = as_json

    def _print_json(self, data):
        console.print(json.dumps(data, indent=2, ensure_ascii=False),
                      markup=False, highlight=False, emoji=False, soft_wrap=True)

    def standardize(self, terms: List[str], locale: str):
        results = [(term, self.engine.standardize(term, locale)) for term in terms]

        if self.as_json:
            self._print_json({term: standard for term, standard in results})
            return

        table = Table(title=f"Standardized terms ({locale})")
        table.add_column("Input", style="cyan")
        table.add_column("Standard term", style="green")
        table.add_column("Entity key", style="magenta")
        for term, standard in results:
            table.add_row(term, standard, self.engine.get_entity_key(standard) or "-")
        console.print(table)

    def synonyms(self, term: str, locale: str):
        synonyms = self.engine.get_synonyms(term, locale)

        if self.as_json:
            self._print_json(synonyms)
            return

        console.print(Panel("\n".join(synonyms), title=f"Synonyms of '{term}' ({locale})", style="cyan"))

    def equivalent(self, term_a: str, term_b: str):
        same = self.engine.terms_equivalent(term_a, term_b)

        if self.as_json:
            self._print_json({"term_a": term_a, "term_b": term_b, "equivalent": same})
            return

        if same:
            console.print(f"✅ '{term_a}' and '{term_b}' refer to the same concept", style="green")
        else:
            console.print(f"❌ '{term_a}' and '{term_b}' refer to different concepts", style="yellow")

    def annotate(self, text: str, locale: str):
        marked = self.engine.mark_terms(text, locale)

        if self.as_json:
            self._print_json({"text": text, "annotated": marked})
            return

        console.print(Panel(Syntax(marked, "html", word_wrap=True), title=f"Annotated text ({locale})"))

    def terms(self, text: str, locale: str):
        found = self.engine.extract_terms(text, locale)

        if self.as_json:
            self._print_json([{"standard_term": term, "entity_key": key} for term, key in found])
            return

        if not found:
            console.print("No medical terms found", style="yellow")
            return

        table = Table(title=f"Medical terms found ({locale})")
        table.add_column("Standard term", style="green")
        table.add_column("Entity key", style="magenta")
        for term, key in found:
            table.add_row(term, key or "-")
        console.print(table)

    def schema(self, condition: str, title: str, description: str, citations: List[str],
               locale: str, url: Optional[str], last_reviewed: Optional[str]):
        data = self.engine.generate_webpage_schema(
            title=title,
            description=description,
            condition=condition,
            citations=citations,
            locale=locale,
            url=url,
            last_reviewed=last_reviewed,
        )
        self._print_json(data)

    def search(self, query: str, locale: str):
        mappings = self.engine.dictionary.search(query, locale)

        if self.as_json:
            self._print_json([m.concept_id for m in mappings])
            return

        table = Table(title=f"Concepts matching '{query}'")
        table.add_column("Concept", style="cyan")
        table.add_column("Standard term", style="green")
        table.add_column("Synonyms")
        for mapping in mappings:
            table.add_row(mapping.concept_id, mapping.standard_term(locale), ", ".join(mapping.synonyms_for(locale)))
        console.print(table)

    def export(self, format: str):
        console.print(self.engine.dictionary.export(format),
                      markup=False, highlight=False, emoji=False, soft_wrap=True)

    def stats(self):
        stats = {
            "dictionary": self.engine.dictionary.get_stats(),
            "caches": self.engine.get_cache_stats(),
        }

        if self.as_json:
            self._print_json(stats)
            return

        table = Table(title="Terminology dictionary")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        for key, value in stats["dictionary"].items():
            table.add_row(key, str(value))
        console.print(table)

        caches = Table(title="Result caches")
        for column in ("name", "size", "max_size", "ttl_seconds", "hits", "misses", "evictions"):
            caches.add_column(column)
        for name in ("text_cache", "schema_cache"):
            cache_stats = stats["caches"][name]
            caches.add_row(*(str(cache_stats[column]) for column in
                             ("name", "size", "max_size", "ttl_seconds", "hits", "misses", "evictions")))
        console.print(caches)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="medterm - Medical term standardization and annotation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s standardize "period pain" "月经痛"
  %(prog)s synonyms PMS
  %(prog)s annotate "She has severe dysmenorrhea and PMS."
  %(prog)s --locale zh annotate "她有痛经和经前综合征"
  %(prog)s schema DYSMENORRHEA --title "Period pain guide" --citation ACOG_DYSMENORRHEA
        """
    )

    parser.add_argument(
        "--locale", "-l",
        choices=["en", "zh"],
        default=None,
        help="Locale for standard terms (default: from config)"
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to a YAML configuration file"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    standardize = subparsers.add_parser("standardize", help="Resolve terms to their standard form")
    standardize.add_argument("terms", nargs="+")

    synonyms = subparsers.add_parser("synonyms", help="List the synonyms of a term")
    synonyms.add_argument("term")

    equivalent = subparsers.add_parser("equivalent", help="Check whether two terms are the same concept")
    equivalent.add_argument("term_a")
    equivalent.add_argument("term_b")

    annotate = subparsers.add_parser("annotate", help="Mark medical terms in text")
    annotate.add_argument("text", nargs="?", help="Text to annotate (default: read stdin)")

    terms = subparsers.add_parser("terms", help="List the medical concepts found in text")
    terms.add_argument("text", nargs="?", help="Text to scan (default: read stdin)")

    schema = subparsers.add_parser("schema", help="Generate MedicalWebPage JSON-LD")
    schema.add_argument("condition", help="Condition entity key, e.g. DYSMENORRHEA")
    schema.add_argument("--title", required=True)
    schema.add_argument("--description", default="")
    schema.add_argument("--citation", action="append", default=[], dest="citations")
    schema.add_argument("--url")
    schema.add_argument("--last-reviewed")

    search = subparsers.add_parser("search", help="Search the terminology table")
    search.add_argument("query")

    export = subparsers.add_parser("export", help="Export the terminology table")
    export.add_argument("--format", "-f", choices=["json", "yaml", "csv"], default="json")

    subparsers.add_parser("stats", help="Show dictionary and cache statistics")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = MedTermConfig.load_from_file(args.config) if args.config else default_config
    except MedTermException as e:
        console.print(f"❌ {e}", style="red")
        return 2

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    cli = MedTermCLI(config, as_json=args.json)
    locale = args.locale or config.default_locale

    try:
        if args.command == "standardize":
            cli.standardize(args.terms, locale)
        elif args.command == "synonyms":
            cli.synonyms(args.term, locale)
        elif args.command == "equivalent":
            cli.equivalent(args.term_a, args.term_b)
        elif args.command == "annotate":
            cli.annotate(args.text if args.text is not None else sys.stdin.read(), locale)
        elif args.command == "terms":
            cli.terms(args.text if args.text is not None else sys.stdin.read(), locale)
        elif args.command == "schema":
            cli.schema(args.condition, args.title, args.description, args.citations,
                       locale, args.url, args.last_reviewed)
        elif args.command == "search":
            cli.search(args.query, locale)
        elif args.command == "export":
            cli.export(args.format)
        elif args.command == "stats":
            cli.stats()
    except MedTermException as e:
        console.print(f"❌ {e}", style="red")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
