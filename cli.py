import json
import sys
from pathlib import Path

from api.services.orchestrators.ziwei_full import build_chart
from api.services.ziwei.errors import AdapterError


def main() -> None:
    in_path = Path(sys.argv[1])
    out_path = Path(sys.argv[2])
    data = json.loads(in_path.read_text(encoding="utf-8"))
    try:
        chart_id, snapshot = build_chart(data)
    except AdapterError as err:
        print(json.dumps(err.to_dict(), ensure_ascii=False, indent=2), file=sys.stderr)
        sys.exit(2)
    output = {"chart_id": chart_id, "snapshot": snapshot.model_dump(mode="json")}
    out_path.write_text(json.dumps(output, ensure_ascii=False, indent=2), encoding="utf-8")
    if snapshot.errors:
        print(f"Chart has failed sections: {', '.join(sorted(snapshot.errors))}", file=sys.stderr)
    print(f"Wrote chart {chart_id} → {out_path}")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python cli.py input.json output.json")
        sys.exit(1)
    main()
