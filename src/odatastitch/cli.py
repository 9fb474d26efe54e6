from __future__ import annotations

import argparse
import logging
import sys

from odatastitch.compare.comparator import run_comparison, run_repeated
from odatastitch.config.runtime_defaults import get_runtime_defaults
from odatastitch.config.settings import (
    SampleParameters,
    load_sample_file,
    parse_id_csv,
    resolve_api_settings,
)
from odatastitch.service.client import ODataClient
from odatastitch.service.errors import ConfigurationMissingError, TransportFailureError
from odatastitch.util.json import json_dumps

LOG = logging.getLogger("odatastitch.cli")

SUCCESS_EXIT_CODE = 0
FAIL_EXIT_CODE = 1
MISMATCH_EXIT_CODE = 3
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="odatastitch-compare",
        description=(
            "Compare one deeply nested $expand query for schedule tasks against "
            "several flat queries stitched together client side."
        ),
    )
    parser.add_argument("--apiKey", "--api-key", dest="api_key", default=None, help="API credential (env: apiKey)")
    parser.add_argument(
        "--apiBaseUrl",
        "--api-base-url",
        dest="api_base_url",
        default=None,
        help="API endpoint root (env: apiBaseUrl)",
    )
    parser.add_argument("--sample-file", default=None, help="TOML file with a [sample] table of filter values")
    parser.add_argument("--lot-ids", default=None, help="Comma-separated lot ids")
    parser.add_argument("--financial-community-ids", default=None, help="Comma-separated financial community ids")
    parser.add_argument("--vendor-id", type=int, default=None, help="Vendor id for vendor/account-category links")
    parser.add_argument(
        "--include-completed",
        action="store_true",
        help="Do not restrict schedule tasks to enteredCompletionDate eq null",
    )
    parser.add_argument("--max-workers", type=int, default=None, help="Concurrent requests per fan-out stage")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds (0 disables)")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument("--auth-scheme", default=None, help="Authorization header scheme (default from config)")
    parser.add_argument("--repetitions", type=int, default=1, help="Number of sequential comparison passes")
    parser.add_argument(
        "--verify-equivalence",
        action="store_true",
        help="Also check that both strategies produced the same task graph",
    )
    parser.add_argument("--show-tasks", action="store_true", help="Print the assembled schedule tasks as JSON")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="Python logging level",
    )
    return parser


def _sample_from_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> SampleParameters:
    try:
        sample = SampleParameters.from_defaults()
        if args.sample_file:
            sample = load_sample_file(args.sample_file, base=sample)
        sample = sample.override(
            lot_ids=parse_id_csv(args.lot_ids, "--lot-ids") if args.lot_ids else None,
            financial_community_ids=(
                parse_id_csv(args.financial_community_ids, "--financial-community-ids")
                if args.financial_community_ids
                else None
            ),
            vendor_id=args.vendor_id,
        )
    except ValueError as exc:
        parser.error(str(exc))
    if args.include_completed:
        sample = sample.override(open_tasks_only=False)
    if not sample.lot_ids or not sample.financial_community_ids:
        parser.error("lot ids and financial community ids must not be empty")
    return sample


def _request_timeout(args: argparse.Namespace, service_defaults):
    if args.timeout is None:
        return service_defaults.request_timeout()
    if args.timeout <= 0:
        return None
    return float(args.timeout)


def _print_result(result, args: argparse.Namespace) -> None:
    if args.json:
        print(json_dumps(result.to_dict(), indent=True))
        return
    print(f"Original query elapsed time = {result.original_ms:.0f} ms")
    print(f"New query elapsed time = {result.stitched_ms:.0f} ms")
    if result.equivalence is not None:
        verdict = "equivalent" if result.equivalence.equivalent else "DIFFERENT"
        print(f"Task graphs are {verdict} ({result.equivalence.compared} tasks compared)")


def _print_repeated(repeated, args: argparse.Namespace) -> None:
    if args.json:
        print(json_dumps(repeated.to_dict(), indent=True))
        return
    summary = repeated.summary()
    for label, key in (("Original", "original_ms"), ("New", "stitched_ms")):
        stats = summary[key]
        print(
            f"{label} query elapsed time = {stats['mean']:.0f} ms mean "
            f"(median {stats['median']:.0f}, min {stats['min']:.0f}, max {stats['max']:.0f}, "
            f"n={int(stats['n'])})"
        )


def run(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)

    try:
        settings = resolve_api_settings(args.api_key, args.api_base_url)
    except ConfigurationMissingError as exc:
        LOG.error("%s; 'apiKey' and 'apiBaseUrl' must be supplied as arguments or environment variables", exc)
        return FAIL_EXIT_CODE

    if args.repetitions <= 0:
        parser.error("--repetitions must be > 0")
    sample = _sample_from_args(parser, args)
    defaults = get_runtime_defaults()
    service_defaults = defaults.service_defaults
    client = ODataClient(
        settings,
        timeout=_request_timeout(args, service_defaults),
        verify_tls=service_defaults.default_verify_tls and not args.insecure,
        auth_scheme=args.auth_scheme or service_defaults.default_auth_scheme,
    )
    options = {
        "verify_equivalence": args.verify_equivalence,
        "max_workers": args.max_workers,
    }

    with client:
        try:
            if args.repetitions == 1:
                result = run_comparison(client, sample, **options)
            else:
                repeated = run_repeated(client, sample, repetitions=args.repetitions, **options)
        except TransportFailureError:
            LOG.exception("Comparison aborted: a retrieval request failed")
            return FAIL_EXIT_CODE

    if args.repetitions != 1:
        _print_repeated(repeated, args)
        mismatched = any(item.equivalence is not None and not item.equivalence.equivalent for item in repeated.runs)
        return MISMATCH_EXIT_CODE if mismatched else SUCCESS_EXIT_CODE

    if args.show_tasks:
        print(json_dumps([task.to_payload() for task in result.stitched_tasks], indent=True))
    _print_result(result, args)
    if result.equivalence is not None and not result.equivalence.equivalent:
        return MISMATCH_EXIT_CODE
    return SUCCESS_EXIT_CODE


def main(argv: list[str] | None = None) -> int:
    return run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
