"""Command line interface for Veritas Scan."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import List, Optional

from . import __version__
from .app.bridge import NativeBridgeAdapter
from .app.controller import ScanController
from .app.state import AnalysisStatus, ViewState
from .export import summarize_batch, write_batch_report, write_history_report, write_result_report
from .log_utils import setup_logging
from .preprocess import MediaFile
from .remote.client import AnalysisClient
from .results import AnalysisResult
from .settings import ScanConfig, SettingsStore


def _format_result(result: AnalysisResult, label: str = "") -> str:
    head = f"{label}: " if label else ""
    lines = [f"{head}{result.verdict} (score {result.score:g}/100, {'synthetic' if result.is_ai else 'authentic'})"]
    sig = result.model_signature
    lines.append(f"  model signature: {sig.name} ({sig.confidence:g}%)")
    if result.watermark.detected:
        providers = ", ".join(s.provider for s in result.watermark.signatures) or "unknown provider"
        lines.append(f"  watermark: {providers}")
    for region in result.suspicious_regions:
        lines.append(f"  region {list(region.box_2d)}: {region.label} ({region.confidence:g}%)")
    if result.has_video_analysis:
        video = result.video_analysis()
        lines.append(f"  temporal consistency: {video.temporal_consistency_score:g}/100")
        for anomaly in video.frame_anomalies:
            lines.append(f"  t={anomaly.timestamp:.2f}s: {anomaly.description}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Score images and videos for synthetic-content signatures.")
    ap.add_argument("files", nargs="*", help="Media files to analyse (two or more run as a batch)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    ap.add_argument("--model", type=str, default=None, help="Analysis model name")
    ap.add_argument("--endpoint", type=str, default=None, help="Analysis service base URL")
    ap.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    ap.add_argument("--max-dimension", type=int, default=None, help="Longest image side before upload")
    ap.add_argument("--quality", type=int, default=None, help="JPEG quality (1-95) for re-encoded images")
    ap.add_argument("--save-settings", action="store_true", help="Persist the options above as defaults")

    ap.add_argument("--export", type=str, default=None, help="Write the JSON report to this file or directory")
    ap.add_argument("--history-out", type=str, default=None, help="Write the session history to this file or directory")
    ap.add_argument(
        "--inject",
        action="append",
        default=[],
        metavar="PAYLOAD",
        help="Push a host result through the native bridge (JSON or free text); repeatable",
    )
    ap.add_argument("--log-dir", type=str, default=None)
    ap.add_argument("-v", "--verbose", action="store_true")

    args = ap.parse_args(argv)

    if not args.files and not args.inject:
        ap.print_usage()
        return 2

    setup_logging(Path(args.log_dir) if args.log_dir else None, verbose=args.verbose)

    store = SettingsStore()
    try:
        config = ScanConfig.from_settings(store.load()).with_overrides(
            model=args.model,
            endpoint=args.endpoint,
            timeout_s=args.timeout,
            max_dimension=args.max_dimension,
            jpeg_quality=args.quality,
        )
    except ValueError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    if args.save_settings:
        store.update(
            {
                "analysis": {"model": config.model, "endpoint": config.endpoint, "timeout_s": config.timeout_s},
                "preprocess": {"max_dimension": config.max_dimension, "jpeg_quality": config.jpeg_quality},
            }
        )

    if args.files and not config.api_key:
        print("No API key found. Set GEMINI_API_KEY in the environment.", file=sys.stderr)
        return 2

    try:
        media = [MediaFile.from_path(p) for p in args.files]
    except OSError as e:
        print(f"Cannot read input: {e}", file=sys.stderr)
        return 2

    controller = ScanController.from_config(config, AnalysisClient.from_config(config))
    controller.events.on_alert(lambda msg: print(msg, file=sys.stderr))
    controller.events.on_batch_progress(
        lambda done, total: print(f"[{done}/{total}] processed", flush=True)
    )

    exit_code = 0
    if media:
        controller.submit_files(media)
        controller.wait()

        if controller.view is ViewState.RESULT and controller.state.current_result is not None:
            result = controller.state.current_result
            print(_format_result(result, media[0].name))
            if args.export:
                print(f"\nWrote report to: {write_result_report(result, Path(args.export))}")
        elif controller.view is ViewState.BATCH_RESULT:
            results = controller.state.batch_results
            for item in results:
                print(_format_result(item.result, item.file_name))
            summary = summarize_batch(results)
            print(
                f"\n{summary.total} of {len(media)} files analysed: "
                f"{summary.synthetic} synthetic ({summary.synthetic_pct}%), {summary.authentic} authentic"
            )
            if args.export:
                print(f"Wrote batch report to: {write_batch_report(results, Path(args.export))}")

        if controller.status is AnalysisStatus.ERROR:
            exit_code = 1

    if args.inject:
        host = SimpleNamespace()
        with NativeBridgeAdapter(controller, host):
            for payload in args.inject:
                host.handleResult(payload)
                controller.poll()
                print(_format_result(controller.state.current_result, "bridge"))

    stats = controller.history.summary()
    print(f"\nSession history: {stats.total} scans, {stats.synthetic} synthetic, mean score {stats.mean_score:.1f}")
    if args.history_out:
        print(f"Wrote history to: {write_history_report(controller.history.items(), Path(args.history_out))}")

    return exit_code
