#!/usr/bin/env python3
"""
SecGate - sec-runner

CI/CD client for the security gate. Runs a named suite against an
environment, prints the verdict, writes artifacts and exits with the
gate's exit code.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from secgate import __version__

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger("sec-runner")

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"
DEFAULT_TIMEOUT = 1800

DECISION_ICONS = {"PASS": "✓", "WARN": "⚠", "BLOCK": "✗"}


class GateRequestError(Exception):
    """The gate API could not be reached or rejected the request."""
    pass


def fetch_gate_result(
    base_url: str,
    api_key: Optional[str],
    suite: str,
    env: str,
    git_sha: Optional[str] = None,
    pipeline_url: Optional[str] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> Dict[str, Any]:
    """POST /run/gate-by-suite and return the standardized gate result."""
    url = f"{base_url.rstrip('/')}/run/gate-by-suite"
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    body = {"suite": suite, "env": env, "git_sha": git_sha, "pipeline_url": pipeline_url}

    try:
        response = requests.post(url, json=body, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise GateRequestError(f"Gate API request failed: {e}") from e

    if not response.ok:
        raise GateRequestError(
            f"Gate API request failed: {response.status_code} {response.reason}\n{response.text}"
        )

    payload = response.json()
    return payload.get("data") or payload


def format_summary(result: Dict[str, Any]) -> str:
    decision = result.get("decision", "?")
    lines = [
        "",
        "=" * 51,
        "           SECURITY GATE RESULT",
        "=" * 51,
        "",
        f"Decision:          {DECISION_ICONS.get(decision, '?')} {decision}",
        f"Exit Code:         {result.get('exit_code')}",
        f"Weighted Score:    {float(result.get('weighted_score') or 0):.2f}",
        f"Test Run Findings: {result.get('test_run_findings', 0)}",
        f"Workflow Findings: {result.get('workflow_findings', 0)}",
    ]
    if result.get("security_run_id"):
        lines.append(f"Security Run:      {result['security_run_id']}")
    if result.get("summary"):
        lines += ["", f"Summary: {result['summary']}"]
    lines += ["", "=" * 51, ""]
    return "\n".join(lines)


def generate_markdown_report(result: Dict[str, Any]) -> str:
    md = "# Security Gate Report\n\n"
    md += f"## Decision: {result.get('decision')}\n\n"
    md += f"- **Exit Code**: {result.get('exit_code')}\n"
    md += f"- **Weighted Score**: {float(result.get('weighted_score') or 0):.2f}\n"
    md += f"- **Test Run Findings**: {result.get('test_run_findings', 0)}\n"
    md += f"- **Workflow Findings**: {result.get('workflow_findings', 0)}\n\n"

    details = result.get("raw_details") or {}
    if details:
        md += "## Gate Calculation\n\n"
        md += f"- **Test Action**: {details.get('test_action')} (score {details.get('test_weighted_score')})\n"
        md += f"- **Workflow Action**: {details.get('workflow_action')} (score {details.get('workflow_weighted_score')})\n"
        md += f"- **Combine Operator**: {details.get('combine_operator')}\n\n"

    if result.get("summary"):
        md += f"## Summary\n\n{result['summary']}\n\n"

    return md


def write_artifacts(result: Dict[str, Any], out_dir: str, generate_report: bool = True):
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    gate_result_path = out_path / "gate-result.json"
    gate_result_path.write_text(json.dumps(result, indent=2))
    logger.info(f"Wrote gate result to: {gate_result_path}")

    if generate_report:
        report_path = out_path / "gate-summary.md"
        report_path.write_text(generate_markdown_report(result))
        logger.info(f"Wrote summary report to: {report_path}")


def resolve_exit_code(result: Dict[str, Any], fail_on_warn: bool = False) -> int:
    if fail_on_warn and result.get("decision") == "WARN":
        return 1
    return int(result.get("exit_code", 1))


def cmd_run(args: argparse.Namespace) -> int:
    logger.info(f"Running security gate check: suite={args.suite} env={args.env}")
    if args.git:
        logger.info(f"Git SHA: {args.git}")
    if args.pipeline:
        logger.info(f"Pipeline: {args.pipeline}")

    try:
        result = fetch_gate_result(
            args.base_url,
            args.api_key,
            args.suite,
            args.env,
            git_sha=args.git,
            pipeline_url=args.pipeline,
            timeout=args.timeout,
        )
    except (GateRequestError, ValueError) as e:
        logger.error(f"Error running security gate check: {e}")
        return 1

    print(format_summary(result))

    if args.out:
        write_artifacts(result, args.out, generate_report=args.report)

    return resolve_exit_code(result, fail_on_warn=args.fail_on_warn)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sec-runner",
        description="Run security gate checks in CI/CD",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sec-runner run --suite P0 --env staging
  sec-runner run --suite P1 --env production --git $GIT_SHA --fail-on-warn
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest="command")

    run = subparsers.add_parser("run", help="Run security gate check")
    run.add_argument('--suite', required=True, help='Security suite name (e.g., P0, P1)')
    run.add_argument('--env', required=True, help='Environment name (e.g., staging, production)')
    run.add_argument('--git', help='Git commit SHA')
    run.add_argument('--pipeline', help='CI pipeline URL')
    run.add_argument('--base-url', default=os.environ.get("SEC_RUNNER_BASE_URL", DEFAULT_BASE_URL),
                     help='API base URL (default: $SEC_RUNNER_BASE_URL)')
    run.add_argument('--api-key', default=os.environ.get("SEC_RUNNER_API_KEY"),
                     help='API key sent as a bearer token (default: $SEC_RUNNER_API_KEY)')
    run.add_argument('--out', default='./artifacts', help='Output directory for artifacts')
    run.add_argument('--no-report', dest='report', action='store_false',
                     help='Skip the markdown summary report')
    run.add_argument('--fail-on-warn', action='store_true', help='Exit 1 on a WARN decision')
    run.add_argument('--timeout', type=int, default=DEFAULT_TIMEOUT,
                     help='Request timeout in seconds')
    run.set_defaults(func=cmd_run)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
