import pytest

from latex import escape_latex, format_bullets, render_latex
from conftest import resume_content


def full_content():
    return resume_content(
        experience=[
            {
                "company": "R&D Labs",
                "position": "Engineer_II",
                "start_date": "2020",
                "end_date": None,
                "description": "- Cut costs 20%\n• Shipped #1 feature\n\n  plain line",
            }
        ],
        skills=["C#", "Python"],
        education=[{"institution": "MIT", "degree": "BSc", "year": "2019"}],
        projects=[{"name": "Tool~Kit", "technologies": "Go, gRPC", "description": "Built it"}],
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a & b", r"a \& b"),
        ("100%", r"100\%"),
        ("$5", r"\$5"),
        ("#1", r"\#1"),
        ("snake_case", r"snake\_case"),
        ("{x}", r"\{x\}"),
        ("~", r"\textasciitilde{}"),
        ("x^2", r"x\textasciicircum{}2"),
        ("C:\\dir", r"C:\textbackslash{}dir"),
    ],
)
def test_escape_each_special_character(raw, expected):
    assert escape_latex(raw) == expected


def test_escape_backslash_keeps_its_own_braces():
    # a naive chained replace would turn this into \textbackslash\{\}
    assert escape_latex("\\{") == r"\textbackslash{}\{"


def test_escape_handles_none():
    assert escape_latex(None) == ""


def test_bullets_strip_leading_markers_and_blank_lines():
    out = format_bullets("- first\n• second\n\n   third  ")
    assert out.split("\n  ") == [r"\item first", r"\item second", r"\item third"]


def test_single_line_is_one_item():
    assert format_bullets("Did a thing") == r"\item Did a thing"


def test_render_is_deterministic():
    content = full_content()
    assert render_latex(content, "modern") == render_latex(content, "modern")
    assert render_latex(content, "classic") == render_latex(content, "classic")


def test_modern_template_contents():
    out = render_latex(full_content(), "modern")
    assert out.startswith(r"\documentclass[11pt,a4paper]{article}")
    assert r"\section*{Professional Experience}" in out
    assert r"\subsection*{Engineer\_II \hfill 2020 -- Present}" in out
    assert r"\textit{R\&D Labs}" in out
    assert r"\item Cut costs 20\%" in out
    assert r"\item Shipped \#1 feature" in out
    assert r"\textbf{C\#} \quad \textbf{Python}" in out
    assert r"\subsection*{Tool\textasciitilde{}Kit}" in out
    assert out.rstrip().endswith(r"\end{document}")


def test_classic_template_contents():
    out = render_latex(full_content(), "classic")
    assert r"\section*{EXPERIENCE}" in out
    assert r"\textbf{Engineer\_II} \hfill 2020 -- Present \\" in out
    assert "C\\#, Python" in out
    assert r"\section*{EDUCATION}" in out


def test_unknown_template_falls_back_to_modern():
    content = full_content()
    assert render_latex(content, "fancy") == render_latex(content, "modern")


def test_optional_sections_omitted_when_empty():
    out = render_latex(resume_content(), "modern")
    assert "Education" not in out
    assert "Projects" not in out


def test_no_unescaped_user_specials():
    content = resume_content()
    content["basics"]["summary"] = "50% of $ & # _ { } ~ ^ \\"
    out = render_latex(content, "modern")
    line = [l for l in out.splitlines() if l.startswith("50")][0]
    assert line == (
        r"50\% of \$ \& \# \_ \{ \} \textasciitilde{} \textasciicircum{} \textbackslash{}"
    )
