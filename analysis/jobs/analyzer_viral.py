#!/usr/bin/env python3
import sys
import logging
import argparse
import json
from datetime import datetime, timezone

# Add project root to path
sys.path.insert(0, ".")

from core.db import SessionLocal
from core.logging import setup_json_logging
from core.store import VideoRecordStore
from analysis.viral import ViralVideoDetector
from analysis.period_ranking import PeriodRankingAggregator

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Detect viral videos or rank channels over a window")
    parser.add_argument("report", choices=["viral", "ranking"], help="Report to produce")
    parser.add_argument("--days", type=int, help="Trailing window in days (viral default: full history, ranking default: 30)")
    parser.add_argument("--video-type", help="normal, shorts (or all / live where supported)")
    parser.add_argument("--out-file", help="Output file path (optional)")

    args = parser.parse_args()

    setup_json_logging()

    with SessionLocal() as session:
        store = VideoRecordStore(session)
        if args.report == "viral":
            detection = ViralVideoDetector(store).detect(args.days, args.video_type)
            if not detection.ok:
                raise SystemExit(f"Viral detection failed: {detection.error}")
            results = detection.videos
        else:
            results = PeriodRankingAggregator(store).rank(args.days or 30, args.video_type)

    output_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "analysis_params": {
            "report": args.report,
            "days_ago": args.days,
            "video_type": args.video_type
        },
        "results": [result.model_dump(mode="json") for result in results]
    }

    # Output results
    json_output = json.dumps(output_data, indent=2, ensure_ascii=False)

    if args.out_file:
        with open(args.out_file, 'w', encoding='utf-8') as f:
            f.write(json_output)
        print(f"Results saved to {args.out_file}")
    else:
        print(json_output)


if __name__ == "__main__":
    main()
