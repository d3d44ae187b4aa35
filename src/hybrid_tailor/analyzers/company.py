"""Employer recognisability check (no model call)."""

from __future__ import annotations

import logging

from hybrid_tailor.analyzers.base import AnalyzerOutput, usage_from
from hybrid_tailor.models.analysis import CompanyResearchResult
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.resume import ResumeContent

logger = logging.getLogger(__name__)

# Employers a U.S. recruiter recognises without explanation (lower-cased)
WELL_KNOWN_COMPANIES: frozenset[str] = frozenset({
    # tech
    "google", "apple", "microsoft", "amazon", "meta", "facebook", "netflix",
    "tesla", "nvidia", "intel", "ibm", "oracle", "salesforce", "adobe",
    "uber", "lyft", "airbnb", "spotify", "twitter", "x", "linkedin", "github",
    "stripe", "square", "paypal", "shopify", "twilio", "atlassian", "zoom",
    "slack", "dropbox", "snap", "pinterest", "reddit", "discord",
    # finance
    "goldman sachs", "morgan stanley", "jp morgan", "jpmorgan", "citibank",
    "bank of america", "wells fargo", "blackrock", "fidelity", "vanguard",
    # consulting
    "mckinsey", "bain", "bcg", "boston consulting", "deloitte", "accenture",
    "pwc", "kpmg", "ey", "ernst & young",
    # other
    "walmart", "target", "costco", "nike", "coca-cola", "pepsi",
    "procter & gamble", "johnson & johnson", "pfizer", "moderna",
})


def research_company(company_name: str) -> CompanyResearchResult:
    if company_name.lower().strip() in WELL_KNOWN_COMPANIES:
        return CompanyResearchResult(company_name=company_name, is_well_known=True, size="enterprise")
    return CompanyResearchResult(company_name=company_name, context=company_name)


def research_employers(resume: ResumeContent) -> list[CompanyResearchResult]:
    """One result per distinct employer, in resume order."""
    by_name: dict[str, tuple[str, list[str]]] = {}
    for exp in resume.experiences:
        key = exp.company.lower().strip()
        if not key:
            continue
        by_name.setdefault(key, (exp.company, []))[1].append(exp.id)

    return [
        research_company(name).model_copy(update={"experience_ids": ids})
        for name, ids in by_name.values()
    ]


class CompanyContextAnalyzer:
    name = "company"

    async def analyze(self, resume: ResumeContent, job: JobData) -> AnalyzerOutput:
        companies = research_employers(resume)
        unknown = [c.company_name for c in companies if not c.is_well_known]
        if unknown:
            logger.debug("Employers needing context: %s", unknown)
        return AnalyzerOutput(companies, usage_from(self.name))
