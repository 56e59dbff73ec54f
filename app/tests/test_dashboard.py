from html import escape
import pytest
from fastapi.testclient import TestClient
from conftest import FakeGuideService, sample_guide
from context import AppContext
from main import create_app
from services.affiliate import generate_part_links, generate_tool_links, shop_all_link
from services.guide_renderer import GuideRenderer
from services.nhtsa import VinDecodeError
from services.openrouter import ProviderError


class TestVinForm:
    @pytest.mark.parametrize("vin", ["", "1HGCM8263", "1HGCM82633A0043521", "   "])
    def test_wrong_length_never_decodes(self, client, fake_service, vin):
        response = client.post("/decode-vin", data={"vin": vin})

        assert response.status_code == 400
        assert "VIN must be exactly 17 characters" in response.text
        assert fake_service.calls == []

    def test_valid_vin_prefills_form(self, client, fake_service):
        response = client.post("/decode-vin", data={"vin": "19xfb2f59fe000001"})

        assert response.status_code == 200
        assert fake_service.calls == [("decode_vin", "19xfb2f59fe000001")]
        assert 'name="year" placeholder="ENTER YEAR" value="2015"' in response.text
        assert 'value="HONDA"' in response.text
        assert "Decoded 2015 HONDA Civic (LX)" in response.text

    def test_decode_failure_shown_inline(self, settings):
        service = FakeGuideService(error=VinDecodeError("No results found"))
        client = TestClient(create_app(context=AppContext(settings=settings, guide_service=service)))

        response = client.post("/decode-vin", data={"vin": "19XFB2F59FE000001"})
        assert response.status_code == 502
        assert "Could not decode VIN: No results found" in response.text


class TestRepairFlow:
    def test_dashboard_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert 'action="/repair"' in response.text
        assert 'action="/decode-vin"' in response.text

    def test_submit_redirects_to_guide(self, client):
        response = client.post(
            "/repair",
            data={"year": "2015", "make": "Honda", "model": "Civic", "task": "replace brake pads"},
            follow_redirects=False,
        )
        assert response.status_code == 303
        assert response.headers["location"] == "/repair/2015/Honda/Civic/replace%20brake%20pads"

    def test_submit_without_task_uses_general(self, client, fake_service):
        response = client.post(
            "/repair", data={"year": "2015", "make": "Honda", "model": "Civic"}, follow_redirects=False
        )
        assert response.headers["location"] == "/repair/2015/Honda/Civic"

        client.get(response.headers["location"])
        assert fake_service.calls[0][2] == "general maintenance and inspection"

    def test_submit_requires_vehicle(self, client, fake_service):
        response = client.post("/repair", data={"year": "2015", "make": "", "model": "Civic"})
        assert response.status_code == 400
        assert "Year, make and model are all required" in response.text
        assert fake_service.calls == []

    def test_slash_in_vehicle_rejected_inline(self, client, fake_service):
        response = client.post(
            "/repair", data={"year": "2015", "make": "Honda", "model": "CR-V/EX", "task": "oil change"}
        )
        assert response.status_code == 400
        assert "cannot contain &#x27;/&#x27;" in response.text
        assert 'value="CR-V/EX"' in response.text
        assert fake_service.calls == []

    @pytest.mark.parametrize(
        "task",
        [
            "replace 1/2 shaft",
            "re-gap spark plugs",
            "general",
            "fix oil leak & gasket?",
            "swap A/C compressor / clutch",
        ],
    )
    def test_task_survives_redirect_verbatim(self, client, fake_service, task):
        response = client.post(
            "/repair", data={"year": "2015", "make": "Honda", "model": "Civic", "task": task}
        )

        assert response.status_code == 200
        assert "Front Brake Pad Replacement" in response.text
        _, vehicle, sent_task = fake_service.calls[0]
        assert vehicle.display == "2015 Honda Civic"
        assert sent_task == task

    def test_guide_page(self, client, fake_service):
        response = client.get("/repair/2015/Honda/Civic/replace%20brake%20pads")

        assert response.status_code == 200
        _, vehicle, task = fake_service.calls[0]
        assert vehicle.display == "2015 Honda Civic"
        assert task == "replace brake pads"
        assert "Front Brake Pad Replacement" in response.text

    def test_failure_stays_on_form(self, settings):
        service = FakeGuideService(error=ProviderError("quota exceeded"))
        client = TestClient(create_app(context=AppContext(settings=settings, guide_service=service)))

        response = client.get("/repair/2015/Honda/Civic/replace%201%2F2%20shaft")

        assert response.status_code == 502
        assert "Could not generate guide: quota exceeded" in response.text
        assert 'value="replace 1/2 shaft"' in response.text
        assert "Step-by-Step Guide" not in response.text

    def test_unconfigured_provider_stays_on_form(self, unconfigured_client, fake_service):
        response = unconfigured_client.get("/repair/2015/Honda/Civic")
        assert response.status_code == 502
        assert "OPENROUTER_API_KEY" in response.text
        assert fake_service.calls == []


class TestGuideRenderer:
    renderer = GuideRenderer(affiliate_tag="testtag-20")

    def test_parts_and_tools_get_affiliate_links(self):
        guide = sample_guide()
        html = self.renderer.render_guide(guide)

        for part in guide.parts:
            url = generate_part_links(part, guide.vehicle, "testtag-20")[0].url
            assert escape(url, quote=True) in html
        for tool in guide.tools:
            url = generate_tool_links(tool, "testtag-20")[0].url
            assert escape(url, quote=True) in html
        assert escape(shop_all_link(guide.vehicle, "testtag-20"), quote=True) in html
        assert "Buy on Amazon" in html

    def test_steps_in_order_with_image_placeholder(self):
        html = self.renderer.render_guide(sample_guide())

        first = html.index("Loosen the lug nuts")
        second = html.index("Remove the caliper bolts")
        third = html.index("Swap the pads")
        assert first < second < third
        assert 'src="https://img.example/2.png"' in html
        assert html.count("Image Pending...") == 2

    def test_optional_sections_hidden_when_empty(self):
        html = self.renderer.render_guide(sample_guide(safetyWarnings=[], sources=None))
        assert "Safety Warnings" not in html
        assert "Verified Sources" not in html

    def test_sections_shown_when_present(self):
        html = self.renderer.render_guide(sample_guide())
        assert "Safety Warnings" in html
        assert "Verified Sources" in html
        assert 'href="https://example.com/civic-brakes"' in html

    def test_model_output_is_escaped(self):
        guide = sample_guide(title="<script>alert(1)</script>", parts=["Pads & <b>shims</b>"])
        html = self.renderer.render_guide(guide)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html
        assert "Pads &amp; &lt;b&gt;shims&lt;/b&gt;" in html

    def test_only_web_links_rendered(self):
        guide = sample_guide(
            steps=[
                {"step": 1, "instruction": "Open the hood.", "imageUrl": "javascript:alert(1)"},
                {"step": 2, "instruction": "Check the oil.", "imageUrl": "https://img.example/2.png"},
            ],
            sources=[
                {"uri": "javascript:alert(document.cookie)", "title": "Bad"},
                {"uri": "data:text/html,<b>x</b>", "title": "Also bad"},
                {"uri": "https://example.com/manual", "title": "Manual"},
            ],
        )
        html = self.renderer.render_guide(guide)

        assert "javascript:" not in html
        assert "data:text/html" not in html
        assert html.count("Image Pending...") == 1
        assert 'href="https://example.com/manual"' in html

    def test_sources_section_hidden_when_no_web_links(self):
        html = self.renderer.render_guide(sample_guide(sources=[{"uri": "javascript:void(0)", "title": "x"}]))
        assert "Verified Sources" not in html
