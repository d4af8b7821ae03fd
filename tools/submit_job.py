#!/usr/bin/env python3
# ============================================================================
# CLI JOB SUBMISSION TOOL
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tool - Submit plugin specifications over HTTP
# PURPOSE: Create jobs from YAML/JSON specification files
# CREATED: 18 OCT 2026
# ============================================================================
"""
Submit a plugin specification to the creation service.

Usage:
    # Submit a YAML specification
    python tools/submit_job.py specs/weather.yaml

    # JSON works too, with a per-job model
    python tools/submit_job.py specs/weather.json --model claude-3-5-sonnet-20241022

    # Poll for completion
    python tools/submit_job.py specs/weather.yaml --poll --timeout 1800

The specification file holds the specification object itself, or a
document with a top-level "specification" key.
"""

import argparse
import json
import os
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import httpx
import yaml

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.contracts import GenerationModel, JobStatus
from core.models import PluginSpecification

TERMINAL_STATUSES = {s.value for s in JobStatus if s.is_terminal()}


def load_specification(path: str) -> PluginSpecification:
    """
    Load and validate a specification from a .yaml/.yml/.json file.

    Raises:
        ValueError if the file is not a mapping
        pydantic.ValidationError if it is not a valid specification
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a mapping")
    if "specification" in data:
        data = data["specification"]
    return PluginSpecification.model_validate(data)


def submit_job(
    client: httpx.Client,
    specification: PluginSpecification,
    use_template: bool = True,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    POST a specification and return the accepted-job body.

    Raises:
        RuntimeError with the service's error code on rejection
    """
    payload: Dict[str, Any] = {
        "specification": specification.model_dump(by_alias=True, exclude_none=True),
        "use_template": use_template,
    }
    if model:
        payload["model"] = GenerationModel.parse(model).value
    if api_key:
        payload["api_key"] = api_key

    resp = client.post("/api/v1/jobs", json=payload)
    if resp.status_code != 202:
        try:
            body = resp.json()
            detail = f"{body.get('error')}: {body.get('message')}"
        except ValueError:
            detail = resp.text
        raise RuntimeError(f"HTTP {resp.status_code} {detail}")
    return resp.json()


def poll_status(
    client: httpx.Client,
    job_id: str,
    timeout: float = 1800,
    interval: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Optional[Dict[str, Any]]:
    """Poll a job until it is terminal; None on timeout."""
    print(f"\nPolling job {job_id} (timeout {timeout:g}s)...\n")

    start = time.time()
    last_line = None
    while time.time() - start < timeout:
        resp = client.get(f"/api/v1/jobs/{job_id}")
        if resp.status_code == 200:
            data = resp.json()
            status = data.get("status", "unknown")
            line = f"status={status} phase={data.get('current_phase')} iteration={data.get('current_iteration')}"
            if line != last_line:
                elapsed = int(time.time() - start)
                print(f"  [{elapsed:4d}s] {line}")
                last_line = line
            if status in TERMINAL_STATUSES:
                return data
        elif resp.status_code == 404:
            print(f"  Job {job_id} no longer tracked")
            return None
        sleep(interval)

    print(f"\nTimeout after {timeout:g}s")
    return None


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Submit a plugin specification to the creation service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s specs/weather.yaml
  %(prog)s specs/weather.json --no-template --poll
        """,
    )
    parser.add_argument("spec_file", help="YAML or JSON specification file")
    parser.add_argument(
        "--url", "-u",
        default=os.environ.get("PLUGIN_FORGE_URL", "http://localhost:8000"),
        help="Service base URL (default: $PLUGIN_FORGE_URL or http://localhost:8000)",
    )
    parser.add_argument("--model", "-m", help="Generation model for this job")
    parser.add_argument(
        "--no-template",
        action="store_true",
        help="Use the fallback scaffold instead of the plugin-starter template",
    )
    parser.add_argument(
        "--api-key",
        default=os.environ.get("ANTHROPIC_API_KEY"),
        help="API key for the generation provider (default: $ANTHROPIC_API_KEY)",
    )
    parser.add_argument("--poll", "-p", action="store_true", help="Poll until the job finishes")
    parser.add_argument(
        "--timeout", "-t",
        type=int,
        default=1800,
        help="Poll timeout in seconds (default: 1800)",
    )

    args = parser.parse_args(argv)

    try:
        specification = load_specification(args.spec_file)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot load specification: {e}", file=sys.stderr)
        return 1

    print(f"Submitting plugin:")
    print(f"  name:     {specification.name}")
    print(f"  service:  {args.url}")
    print()

    with httpx.Client(base_url=args.url, timeout=30.0) as client:
        try:
            accepted = submit_job(
                client,
                specification,
                use_template=not args.no_template,
                model=args.model,
                api_key=args.api_key,
            )
        except (RuntimeError, ValueError, httpx.HTTPError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        job_id = accepted["job_id"]
        print(f"Submitted successfully!")
        print(f"  job_id: {job_id}")

        if not args.poll:
            return 0

        result = poll_status(client, job_id, timeout=args.timeout)

    if result is None:
        return 1
    print(f"\n--- FINAL RESULT ---")
    print(json.dumps(
        {k: result.get(k) for k in ("status", "result", "error", "current_iteration", "test_results", "validation_score")},
        indent=2,
        default=str,
    ))
    return 0 if result.get("status") == JobStatus.COMPLETED.value else 1


if __name__ == "__main__":
    sys.exit(main())
