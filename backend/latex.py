# latex.py
"""Render a resume content document as LaTeX source.

Pure functions only: the same (content, template) always yields the same
string. Every user-supplied value passes through :func:`escape_latex`.
"""
import re
from typing import Any, Dict, List

TEMPLATES = ("modern", "classic")

_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}
_SPECIALS_RE = re.compile("|".join(re.escape(c) for c in _SPECIALS))


def escape_latex(text: Any) -> str:
    # single pass, so the braces introduced for \textbackslash{} stay intact
    return _SPECIALS_RE.sub(lambda m: _SPECIALS[m.group(0)], str(text or ""))


def format_bullets(text: str) -> str:
    lines = [line.strip() for line in (text or "").split("\n") if line.strip()]
    items = []
    for line in lines:
        if line.startswith("-") or line.startswith("•"):
            line = line[1:].strip()
        items.append(f"\\item {escape_latex(line)}")
    return "\n  ".join(items)


def _itemize(text: str) -> List[str]:
    bullets = format_bullets(text)
    if not bullets:
        return []
    return ["\\begin{itemize}", f"  {bullets}", "\\end{itemize}"]


def _dates(exp: Dict[str, Any]) -> str:
    return f"{escape_latex(exp.get('start_date'))} -- {escape_latex(exp.get('end_date') or 'Present')}"


def _modern(content: Dict[str, Any]) -> str:
    basics = content.get("basics") or {}
    out = [
        r"\documentclass[11pt,a4paper]{article}",
        r"\usepackage[utf8]{inputenc}",
        r"\usepackage[T1]{fontenc}",
        r"\usepackage{lmodern}",
        r"\usepackage[margin=0.75in]{geometry}",
        r"\usepackage{hyperref}",
        r"\usepackage{enumitem}",
        r"\usepackage{titlesec}",
        r"\usepackage{xcolor}",
        "",
        r"\definecolor{primary}{RGB}{0,102,204}",
        "",
        r"\titleformat{\section}{\Large\bfseries\color{primary}}{}{0em}{}[\titlerule]",
        r"\titleformat{\subsection}{\large\bfseries}{}{0em}{}",
        r"\setlist[itemize]{leftmargin=*,noitemsep,topsep=3pt}",
        "",
        r"\pagestyle{empty}",
        "",
        r"\begin{document}",
        "",
        r"\begin{center}",
        f"  {{\\Huge\\bfseries {escape_latex(basics.get('name'))}}} \\\\[5pt]",
        f"  {escape_latex(basics.get('email'))} \\quad {escape_latex(basics.get('phone'))}",
        r"\end{center}",
        "",
        r"\vspace{10pt}",
        "",
        r"\section*{Professional Summary}",
        escape_latex(basics.get("summary")),
        "",
        r"\section*{Professional Experience}",
    ]
    for exp in content.get("experience") or []:
        out.append(f"\\subsection*{{{escape_latex(exp.get('position'))} \\hfill {_dates(exp)}}}")
        out.append(f"\\textit{{{escape_latex(exp.get('company'))}}}")
        out.extend(_itemize(exp.get("description")))
        out.append("")

    out.append(r"\section*{Skills}")
    out.append(" \\quad ".join(f"\\textbf{{{escape_latex(s)}}}" for s in content.get("skills") or []))
    out.append("")

    education = content.get("education") or []
    if education:
        out.append(r"\section*{Education}")
        for edu in education:
            out.append(f"\\subsection*{{{escape_latex(edu.get('degree'))} \\hfill {escape_latex(edu.get('year'))}}}")
            out.append(f"\\textit{{{escape_latex(edu.get('institution'))}}}")
        out.append("")

    projects = content.get("projects") or []
    if projects:
        out.append(r"\section*{Projects}")
        for proj in projects:
            out.append(f"\\subsection*{{{escape_latex(proj.get('name'))}}}")
            out.append(f"\\textit{{Technologies: {escape_latex(proj.get('technologies'))}}}")
            out.extend(_itemize(proj.get("description")))
        out.append("")

    out.append(r"\end{document}")
    return "\n".join(out) + "\n"


def _classic(content: Dict[str, Any]) -> str:
    basics = content.get("basics") or {}
    out = [
        r"\documentclass[11pt,a4paper]{article}",
        r"\usepackage[utf8]{inputenc}",
        r"\usepackage[margin=1in]{geometry}",
        r"\usepackage{enumitem}",
        r"\usepackage{titlesec}",
        "",
        r"\titleformat{\section}{\large\bfseries}{}{0em}{}[\hrule]",
        r"\setlist[itemize]{leftmargin=*,noitemsep}",
        "",
        r"\pagestyle{empty}",
        "",
        r"\begin{document}",
        "",
        r"\begin{center}",
        f"  {{\\LARGE\\textbf{{{escape_latex(basics.get('name'))}}}}} \\\\[8pt]",
        f"  {escape_latex(basics.get('email'))} \\quad {escape_latex(basics.get('phone'))}",
        r"\end{center}",
        "",
        r"\vspace{12pt}",
        "",
        r"\section*{SUMMARY}",
        escape_latex(basics.get("summary")),
        "",
        r"\section*{EXPERIENCE}",
    ]
    for exp in content.get("experience") or []:
        out.append(f"\\textbf{{{escape_latex(exp.get('position'))}}} \\hfill {_dates(exp)} \\\\")
        out.append(f"\\textit{{{escape_latex(exp.get('company'))}}}")
        out.extend(_itemize(exp.get("description")))
        out.append("")

    out.append(r"\section*{SKILLS}")
    out.append(", ".join(escape_latex(s) for s in content.get("skills") or []))
    out.append("")

    education = content.get("education") or []
    if education:
        out.append(r"\section*{EDUCATION}")
        for edu in education:
            out.append(f"\\textbf{{{escape_latex(edu.get('degree'))}}} \\hfill {escape_latex(edu.get('year'))} \\\\")
            out.append(escape_latex(edu.get("institution")))
        out.append("")

    projects = content.get("projects") or []
    if projects:
        out.append(r"\section*{PROJECTS}")
        for proj in projects:
            out.append(f"\\textbf{{{escape_latex(proj.get('name'))}}} \\\\")
            out.append(f"\\textit{{{escape_latex(proj.get('technologies'))}}}")
            out.extend(_itemize(proj.get("description")))
        out.append("")

    out.append(r"\end{document}")
    return "\n".join(out) + "\n"


def render_latex(content: Dict[str, Any], template: str = "modern") -> str:
    if template not in TEMPLATES:
        template = "modern"
    return _classic(content) if template == "classic" else _modern(content)
