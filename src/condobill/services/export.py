"""Service for exporting payment notices to PDF."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from weasyprint import HTML

from condobill.core.calculations import transfer_reference
from condobill.core.dates import format_period_for_display
from condobill.core.models import Adjustment, Charge


def format_money(value) -> str:
    """1361250 -> '1.361.250'."""
    return f"{int(round(value)):,}".replace(",", ".")


class ExportService:
    """Renders charges into payment notices."""

    def __init__(self, building_name: str, transfer_template: str):
        template_dir = Path(__file__).parent.parent / "templates"
        self._env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )
        self._env.filters["money"] = format_money
        self._building_name = building_name
        self._transfer_template = transfer_template

    async def render_notice_html(self, charge: Charge) -> str:
        """Renders the HTML payment notice of one charge."""
        await charge.fetch_related("unit")
        adjustments = await Adjustment.filter(unit=charge.unit, period=charge.period)
        template = self._env.get_template("notice.html")
        return template.render(
            building_name=self._building_name,
            charge=charge,
            unit=charge.unit,
            period=format_period_for_display(charge.period),
            adjustments=adjustments,
            transfer_reference=transfer_reference(
                charge.unit.code, charge.period, self._transfer_template
            ),
        )

    async def generate_pdf_notice(self, charge: Charge, output_path: Path | str) -> Path:
        """
        Generates a PDF payment notice for a charge.

        Args:
            charge: The charge to render.
            output_path: The path where the PDF file will be saved.

        Returns:
            The path to the generated PDF file.
        """
        rendered_html = await self.render_notice_html(charge)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        HTML(string=rendered_html).write_pdf(output_path)

        return output_path
