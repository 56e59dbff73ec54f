import asyncio
import json
import os
import sys
from dotenv import load_dotenv

# Add app directory to sys.path
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "app"))

load_dotenv()

from config import settings as default_settings
from context import build_context
from models.vehicle import Vehicle
from services.guide_renderer import GuideRenderer

import argparse


async def main():
    parser = argparse.ArgumentParser(description="Generate a repair guide for one vehicle and task.")
    parser.add_argument("--vehicle", required=True, help="Vehicle string (Year_Make_Model)")
    parser.add_argument("--task", required=True, help="Repair job, e.g. 'replace front brake pads'")
    parser.add_argument("--out", help="Write output here instead of stdout")
    parser.add_argument("--json", action="store_true", help="Emit the guide as JSON instead of HTML")
    args = parser.parse_args()

    # Parse vehicle string
    parts = args.vehicle.split("_")
    if len(parts) < 3:
        print("❌ Invalid vehicle format. Expected: Year_Make_Model")
        return 1

    vehicle = Vehicle(year=parts[0], make=parts[1], model=" ".join(parts[2:]))

    context = build_context(default_settings)
    if context.config_error:
        print(f"❌ {context.config_error}")
        return 1

    print(f"🔧 Generating guide: {vehicle.display} - {args.task}", file=sys.stderr)
    try:
        guide = await context.guide_service.generate_full_repair_guide(vehicle, args.task)
    except Exception as e:
        print(f"❌ Generation failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        output = json.dumps(guide.to_wire(), indent=2)
    else:
        renderer = GuideRenderer(
            affiliate_tag=context.settings.affiliate_tag, app_title=context.settings.app_title
        )
        output = renderer.render_guide(guide)

    if args.out:
        with open(args.out, "w") as f:
            f.write(output)
        print(f"✅ SAVED → {args.out} ({len(guide.steps)} steps)", file=sys.stderr)
    else:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
