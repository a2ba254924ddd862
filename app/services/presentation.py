"""발표 자료(PPTX) 생성.

확정된 프로젝트 필드(브리프, 시나리오 A/B, ROI)를 다크 테마 슬라이드로 조립합니다.
마크다운 발표 자료와 같은 내용을 담으며, 파일은 저장하지 않고 바이트로 반환합니다.
"""

import logging
from io import BytesIO

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt

from app.models import Project

logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

PROVISIONAL_NOTE = "Provisional figures: the AI service was unavailable. Regenerate before presenting."

# 다크 테마 컬러
COLORS = {
    "background": "1E1E2E",
    "surface": "2D2D3F",
    "primary": "7C3AED",
    "secondary": "06B6D4",
    "text_primary": "FFFFFF",
    "text_secondary": "A0AEC0",
    "success": "10B981",
    "warning": "F59E0B",
}


def hex_to_rgb(hex_color: str) -> RGBColor:
    """Hex 컬러를 RGBColor로 변환."""
    return RGBColor.from_string(hex_color.lstrip("#").upper())


def _blank_slide(prs):
    slide = prs.slides.add_slide(prs.slide_layouts[6])  # Blank
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = hex_to_rgb(COLORS["background"])
    return slide


def _add_text(slide, left, top, width, height, text, size, color, bold=False, center=False):
    box = slide.shapes.add_textbox(Inches(left), Inches(top), Inches(width), Inches(height))
    tf = box.text_frame
    tf.word_wrap = True
    p = tf.paragraphs[0]
    p.text = text
    p.font.size = Pt(size)
    p.font.bold = bold
    p.font.color.rgb = hex_to_rgb(color)
    if center:
        p.alignment = PP_ALIGN.CENTER
    return tf


def _add_bullets(tf, bullets: list[str], size: int = 18):
    for bullet in bullets:
        p = tf.add_paragraph()
        p.text = f"• {bullet}"
        p.font.size = Pt(size)
        p.font.color.rgb = hex_to_rgb(COLORS["text_secondary"])
        p.space_before = Pt(10)


def add_title_slide(prs, title: str, subtitle: str = ""):
    """표지 슬라이드."""
    slide = _blank_slide(prs)
    _add_text(slide, 0.5, 2.8, 9, 1.5, title, 44, COLORS["text_primary"], bold=True, center=True)
    if subtitle:
        _add_text(slide, 0.5, 4.4, 9, 0.8, subtitle, 22, COLORS["text_secondary"], center=True)
    return slide


def add_content_slide(prs, title: str, bullets: list[str], note: str = ""):
    """제목 + 불릿 리스트 슬라이드. note가 있으면 하단에 경고색으로 표시."""
    slide = _blank_slide(prs)
    _add_text(slide, 0.5, 0.5, 9, 0.8, title, 32, COLORS["text_primary"], bold=True)
    tf = _add_text(slide, 0.5, 1.4, 9, 4.8, "", 18, COLORS["text_secondary"])
    _add_bullets(tf, bullets)
    if note:
        _add_text(slide, 0.5, 6.4, 9, 0.8, note, 14, COLORS["warning"])
    return slide


def add_comparison_slide(prs, title: str, left_title: str, left_items: list[str],
                         right_title: str, right_items: list[str]):
    """시나리오 A/B 2컬럼 비교 슬라이드."""
    slide = _blank_slide(prs)
    _add_text(slide, 0.5, 0.3, 9, 0.7, title, 32, COLORS["text_primary"], bold=True)

    columns = (
        (0.3, left_title, left_items, COLORS["warning"]),
        (5.3, right_title, right_items, COLORS["success"]),
    )
    for x, column_title, items, title_color in columns:
        card = slide.shapes.add_shape(
            MSO_SHAPE.ROUNDED_RECTANGLE, Inches(x), Inches(1.2), Inches(4.4), Inches(5.8)
        )
        card.fill.solid()
        card.fill.fore_color.rgb = hex_to_rgb(COLORS["surface"])
        card.line.fill.background()

        _add_text(slide, x + 0.2, 1.4, 4, 0.5, column_title, 22, title_color, bold=True)
        tf = _add_text(slide, x + 0.2, 2.0, 4, 4.8, "", 16, COLORS["text_secondary"])
        _add_bullets(tf, items[:6], size=16)
    return slide


def add_closing_slide(prs, title: str = "Next Steps", contact_info: str = ""):
    """마무리 슬라이드."""
    slide = _blank_slide(prs)
    _add_text(slide, 0.5, 2.5, 9, 1.5, title, 52, COLORS["primary"], bold=True, center=True)
    if contact_info:
        _add_text(slide, 0.5, 4.5, 9, 1, contact_info, 20, COLORS["text_secondary"], center=True)
    return slide


def _scenario_items(scenario) -> list[str]:
    items = [f"Investment: ${scenario.total_cost:,.0f}", f"Timeline: {scenario.timeline or '-'}"]
    if scenario.tech_stack:
        items.append("Stack: " + ", ".join(scenario.tech_stack))
    items.extend(scenario.features[:3])
    if scenario.budget_constrained:
        items.append("Exceeds stated budget")
    return items


def build_presentation(project: Project) -> bytes:
    """
    프로젝트 발표 자료 생성.

    Returns:
        .pptx 파일 바이트
    """
    prs = Presentation()
    prs.slide_width = Inches(10)
    prs.slide_height = Inches(7.5)

    subtitle = f"Prepared for {project.client_name}" if project.client_name else ""
    add_title_slide(prs, project.title, subtitle)

    brief = project.brief
    if brief is not None and (brief.mission or brief.objectives):
        add_content_slide(prs, "Objectives", brief.objectives, note=brief.mission or "")

    if project.scenario_a is not None and project.scenario_b is not None:
        add_comparison_slide(
            prs,
            "Two Ways Forward",
            f"A: {project.scenario_a.name}",
            _scenario_items(project.scenario_a),
            f"B: {project.scenario_b.name}",
            _scenario_items(project.scenario_b),
        )

        roi = project.roi_analysis
        if roi is not None:
            note = PROVISIONAL_NOTE if "estimate" in project.fallback_fields else ""
            add_content_slide(prs, "Return on Investment", [
                f"Cost of doing nothing: ${roi.cost_of_doing_nothing:,.0f}",
                f"Projected savings: ${roi.projected_savings:,.0f}",
                f"Payback period: {roi.payback_period_months:g} months",
                f"3-year ROI: {roi.three_year_roi:g}%",
            ], note=note)

    add_closing_slide(prs, contact_info=project.client_email or "")

    buffer = BytesIO()
    prs.save(buffer)
    logger.info(f"[Assets] {project.id}: 발표 자료 생성 ({len(prs.slides)}장)")
    return buffer.getvalue()
