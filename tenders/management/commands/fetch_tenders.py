import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from accounts.models import Keyword, normalize_keyword
from tenders.services.client import TenderAPIClient
from tenders.services.pipeline import fetch_all, ingest_records, months_ago


class Command(BaseCommand):
    help = "Poll the tender API for subscribed keywords and store new tenders and versions."

    def add_arguments(self, parser):
        parser.add_argument(
            "--keyword",
            action="append",
            dest="keywords",
            help="Keyword to poll (repeatable). Defaults to every active subscribed keyword.",
        )
        parser.add_argument("--months", type=int, help="Only keep records dated within the last N months")
        parser.add_argument("--pages", type=int, help="Maximum number of result pages per keyword")
        parser.add_argument(
            "--skip-details",
            action="store_true",
            help="Store search hits only, without fetching each tender's full history",
        )
        parser.add_argument(
            "--from-file",
            dest="from_file",
            help="Import records from a JSON file (an API response or a list of records) instead of polling",
        )

    def handle(self, *args, **options):
        since = months_ago(options["months"]) if options.get("months") else None
        from_file = options.get("from_file")

        if from_file:
            keywords = options.get("keywords") or [""]
            records = self._load_records(from_file)
            report = ingest_records(records, normalize_keyword(keywords[0]), since)
            self._summary(report)
            return

        keywords = [normalize_keyword(k) for k in options.get("keywords") or []]
        if not keywords:
            keywords = sorted(set(Keyword.objects.filter(is_active=True).values_list("text", flat=True)))
        keywords = [k for k in keywords if k]
        if not keywords:
            self.stdout.write(self.style.WARNING("No active keywords to poll"))
            return

        client = TenderAPIClient(max_pages=options.get("pages"))
        fetched, failures = fetch_all(client, keywords, details=False if options.get("skip_details") else None)
        for keyword in keywords:
            if keyword in fetched:
                self._summary(ingest_records(fetched[keyword], keyword, since))
        for keyword, error in failures.items():
            self.stderr.write(self.style.ERROR(f"[{keyword}] fetch failed: {error}"))
        if failures and not fetched:
            raise CommandError("Every keyword failed to fetch")

    def _load_records(self, path):
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CommandError(f"Cannot read {path}: {exc}")
        if isinstance(payload, dict):
            payload = payload.get("records") or []
        if not isinstance(payload, list):
            raise CommandError(f"{path} holds neither a record list nor an API response")
        return payload

    def _summary(self, report):
        new = sum(1 for r in report.results if r.is_new)
        versions = sum(r.new_versions for r in report.results)
        self.stdout.write(
            self.style.SUCCESS(
                f"[{report.keyword or '-'}] {len(report.results)} records merged: "
                f"{new} new tenders, {versions} new versions, "
                f"{report.skipped} skipped, {report.filtered} out of range, {len(report.conflicts)} conflicts"
            )
        )
