from html import escape
from typing import Optional
from models.guide import RepairGuide, is_web_url
from models.vehicle import VIN_LENGTH
from services.affiliate import generate_part_links, generate_tool_links, shop_all_link

# HUD styling - dark panel, cyan accents
DASHBOARD_CSS = """
        body {
            font-family: "Helvetica Neue", Helvetica, Arial, sans-serif;
            max-width: 1000px;
            margin: 0 auto;
            padding: 30px;
            background: #05080d;
            color: #f1f5f9;
            line-height: 1.6;
        }
        a {
            color: #22d3ee;
        }
        .panel {
            background: rgba(0, 0, 0, 0.8);
            border: 1px solid rgba(34, 211, 238, 0.3);
            border-radius: 12px;
            padding: 24px 28px;
            margin-bottom: 24px;
        }
        .header {
            display: flex;
            justify-content: space-between;
            align-items: flex-start;
            border-bottom: 1px solid rgba(34, 211, 238, 0.3);
            padding-bottom: 18px;
            margin-bottom: 24px;
        }
        .header h1 {
            margin: 0 0 8px 0;
            font-size: 30px;
            font-weight: 900;
            text-transform: uppercase;
            letter-spacing: 1px;
        }
        .header .vehicle {
            color: #22d3ee;
            font-weight: bold;
            font-size: 18px;
        }
        .button {
            display: inline-block;
            border: 1px solid #22d3ee;
            color: #22d3ee;
            padding: 8px 16px;
            border-radius: 6px;
            text-decoration: none;
            text-transform: uppercase;
            font-weight: bold;
            letter-spacing: 1px;
            background: transparent;
            cursor: pointer;
        }
        .buy {
            background: #22d3ee;
            color: #000;
        }
        h2 {
            text-transform: uppercase;
            letter-spacing: 2px;
            font-weight: 900;
        }
        .safety {
            background: rgba(69, 10, 10, 0.4);
            border: 1px solid rgba(239, 68, 68, 0.5);
        }
        .safety li {
            border-left: 4px solid #ef4444;
            padding: 10px 14px;
            margin: 10px 0;
            background: rgba(0, 0, 0, 0.4);
            font-weight: bold;
            list-style: none;
        }
        .grid {
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 24px;
        }
        .item {
            display: flex;
            justify-content: space-between;
            align-items: center;
            gap: 12px;
            padding: 10px 14px;
            margin: 10px 0;
            background: rgba(0, 0, 0, 0.4);
            border: 1px solid rgba(255, 255, 255, 0.1);
            border-radius: 8px;
            list-style: none;
        }
        .step {
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 24px;
            padding: 20px;
            margin: 20px 0;
            background: rgba(255, 255, 255, 0.05);
            border-radius: 16px;
        }
        .step-number {
            display: inline-block;
            width: 44px;
            height: 44px;
            line-height: 44px;
            text-align: center;
            border-radius: 50%;
            background: #22d3ee;
            color: #000;
            font-size: 22px;
            font-weight: 900;
            margin-right: 12px;
        }
        .step-image {
            min-height: 220px;
            display: flex;
            align-items: center;
            justify-content: center;
            background: rgba(0, 0, 0, 0.8);
            border-radius: 12px;
            color: #6b7280;
            font-family: monospace;
        }
        .step-image img {
            max-width: 100%;
            max-height: 400px;
            border-radius: 8px;
        }
        .sources {
            opacity: 0.7;
            font-size: 13px;
        }
        .sources a {
            margin-right: 16px;
        }
        form.vehicle-form {
            display: grid;
            grid-template-columns: repeat(4, 1fr);
            gap: 12px;
        }
        input {
            background: rgba(0, 0, 0, 0.5);
            border: 1px solid rgba(34, 211, 238, 0.3);
            border-radius: 8px;
            padding: 10px 14px;
            color: #22d3ee;
            font-family: monospace;
            text-transform: uppercase;
        }
        .error {
            background: #fff0f0;
            border-left: 8px solid #c00;
            padding: 12px 16px;
            margin: 16px 0;
            border-radius: 0 6px 6px 0;
            font-weight: bold;
            color: #900;
        }
        .note {
            background: rgba(34, 211, 238, 0.08);
            border: 1px solid #22d3ee;
            padding: 12px 16px;
            margin: 16px 0;
            border-radius: 6px;
        }
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>{DASHBOARD_CSS}
    </style>
</head>
<body>
{body}</body>
</html>"""


class GuideRenderer:
    def __init__(self, affiliate_tag: Optional[str] = None, app_title: str = "AI Auto Repair Guide"):
        self.affiliate_tag = affiliate_tag
        self.app_title = app_title

    def render_dashboard(
        self,
        form: Optional[dict] = None,
        error: Optional[str] = None,
        notice: Optional[str] = None,
    ) -> str:
        """Vehicle entry form plus the VIN decoder. Errors are shown inline above the form."""
        form = form or {}

        def value(name: str) -> str:
            return escape(str(form.get(name) or ""), quote=True)

        html = '<div class="panel">\n'
        html += f"    <h1>{escape(self.app_title)}</h1>\n"
        html += "    <p>Enter your vehicle and the job you want to do.</p>\n"
        if error:
            html += f'    <div class="error">{escape(error)}</div>\n'
        if notice:
            html += f'    <div class="note">{escape(notice)}</div>\n'

        html += '    <form method="post" action="/decode-vin">\n'
        html += (
            f'        <input type="text" name="vin" placeholder="VIN ({VIN_LENGTH} CHARACTERS)" '
            f'maxlength="{VIN_LENGTH}" value="{value("vin")}">\n'
        )
        html += '        <button type="submit" class="button">Decode VIN</button>\n'
        html += "    </form>\n"

        html += '    <form method="post" action="/repair" class="vehicle-form">\n'
        for field in ("year", "make", "model"):
            html += (
                f'        <input type="text" name="{field}" placeholder="ENTER {field.upper()}" '
                f'value="{value(field)}">\n'
            )
        html += (
            f'        <input type="text" name="task" placeholder="DESCRIBE THE REPAIR" '
            f'value="{value("task")}">\n'
        )
        html += '        <button type="submit" class="button">Engage</button>\n'
        html += "    </form>\n"
        html += "</div>\n"

        return _page(self.app_title, html)

    def render_guide(self, guide: RepairGuide) -> str:
        vehicle = guide.vehicle

        html = '<div class="panel">\n'
        html += '    <div class="header">\n'
        html += "        <div>\n"
        html += f"            <h1>{escape(guide.title)}</h1>\n"
        html += f'            <div class="vehicle">{escape(vehicle)}</div>\n'
        html += "        </div>\n"
        html += '        <a class="button" href="/">New Search</a>\n'
        html += "    </div>\n"
        html += "</div>\n"

        # Safety first
        if guide.safety_warnings:
            html += '<div class="panel safety">\n'
            html += "    <h2>⚠️ Safety Warnings</h2>\n"
            html += "    <ul>\n"
            for warning in guide.safety_warnings:
                html += f"        <li>{escape(warning)}</li>\n"
            html += "    </ul>\n"
            html += "</div>\n"

        html += '<div class="grid">\n'

        html += '    <div class="panel tools">\n'
        html += "        <h2>🔧 Tools Needed</h2>\n"
        html += "        <ul>\n"
        for tool in guide.tools:
            html += f'            <li class="item"><span>{escape(tool)}</span>'
            for link in generate_tool_links(tool, self.affiliate_tag):
                html += (
                    f' <a href="{escape(link.url, quote=True)}" target="_blank" '
                    f'rel="noopener noreferrer">{escape(link.price)}</a>'
                )
            html += "</li>\n"
        html += "        </ul>\n"
        html += "    </div>\n"

        html += '    <div class="panel parts">\n'
        html += "        <h2>🛒 Parts List</h2>\n"
        html += "        <ul>\n"
        for part in guide.parts:
            html += f'            <li class="item"><span>{escape(part)}</span>'
            for link in generate_part_links(part, vehicle, self.affiliate_tag):
                html += (
                    f' <a class="button buy" href="{escape(link.url, quote=True)}" '
                    f'target="_blank" rel="noopener noreferrer">Buy on {escape(link.provider)}</a>'
                )
            html += "</li>\n"
        html += "        </ul>\n"
        html += (
            f'        <p><a href="{escape(shop_all_link(vehicle, self.affiliate_tag), quote=True)}" '
            f'target="_blank" rel="noopener noreferrer">Shop all parts for this car &rarr;</a></p>\n'
        )
        html += "    </div>\n"

        html += "</div>\n"

        html += '<div class="panel steps">\n'
        html += "    <h2>📋 Step-by-Step Guide</h2>\n"
        for step in guide.steps:
            html += '    <div class="step">\n'
            html += "        <div>\n"
            html += f'            <p><span class="step-number">{step.step}</span><strong>Action Required</strong></p>\n'
            html += f"            <p>{escape(step.instruction)}</p>\n"
            html += "        </div>\n"
            html += '        <div class="step-image">'
            if is_web_url(step.image_url):
                html += f'<img src="{escape(step.image_url, quote=True)}" alt="Step {step.step}">'
            else:
                html += "Image Pending..."
            html += "</div>\n"
            html += "    </div>\n"
        html += "</div>\n"

        sources = [source for source in guide.sources or [] if is_web_url(source.uri)]
        if sources:
            html += '<div class="sources">\n'
            html += "    <h3>Verified Sources</h3>\n"
            for source in sources:
                html += (
                    f'    <a href="{escape(source.uri, quote=True)}" target="_blank" '
                    f'rel="noopener noreferrer">{escape(source.title or source.uri)}</a>\n'
                )
            html += "</div>\n"

        return _page(f"{guide.title} - {vehicle}", html)
