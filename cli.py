import json
import sys
from pathlib import Path

from sarathi.schemas import TimingPredictRequest
from sarathi.routers.timing import predict_timing


def main() -> None:
    in_path = Path(sys.argv[1])
    out_path = Path(sys.argv[2])
    req = TimingPredictRequest.model_validate(json.loads(in_path.read_text(encoding="utf-8")))
    result = predict_timing(req)
    out_path.write_text(result.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
    print(f"Wrote {len(result.windows)} window(s), status={result.status} → {out_path}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python cli.py request.json prediction.json")
        sys.exit(1)
    main()
