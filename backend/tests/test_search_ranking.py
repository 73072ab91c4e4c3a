from __future__ import annotations

from gcc_portal.modules.search.ranking import (
    field_matches,
    query_stems,
    rank_requirements,
    rank_startups,
    stem,
)


def _startup(id_, name, company=None, solution=None, industry=None):
    return {
        "id": id_,
        "name": name,
        "companyName": company,
        "solutionDescription": solution,
        "industry": industry,
    }


def _req(id_, title, description="", created="2026-01-01T00:00:00Z"):
    return {"id": id_, "title": title, "description": description, "createdAt": created}


def test_stemming_and_prefix_matching():
    assert stem("analytics") == "analytic"
    assert stem("payments") == "payment"
    assert query_stems("the Payments and analytics") == ["payment", "analytic"]
    assert field_matches("Payment gateway for payments", ["payment"]) == 2
    assert field_matches("Paytech", ["pay"]) == 1
    assert field_matches("Nothing here", ["payment"]) == 0


def test_company_name_outranks_description():
    rows = [
        _startup("s1", "Zed", company="Acme", solution="We build fintech rails"),
        _startup("s2", "Amy", company="Fintech Labs", solution="Consulting"),
    ]
    out = rank_startups(rows, "fintech")
    assert [r["id"] for r in out] == ["s2", "s1"]


def test_term_filters_by_substring_before_ranking():
    rows = [
        _startup("s1", "Ann", company="DataWorks"),
        _startup("s2", "Bob", company="Logistics Co"),
    ]
    assert [r["id"] for r in rank_startups(rows, "  data ")] == ["s1"]


def test_substring_hits_with_zero_score_sort_last():
    rows = [
        # "cloud" appears only inside a longer token here.
        _req("r1", "Multicloud audit", created="2026-03-01T00:00:00Z"),
        _req("r2", "Cloud migration", created="2026-01-01T00:00:00Z"),
    ]
    out = rank_requirements(rows, "cloud")
    assert [r["id"] for r in out] == ["r2", "r1"]


def test_no_term_orders_by_secondary_key_only():
    startups = [_startup("s2", "bob"), _startup("s1", "Alice"), _startup("s3", "alice")]
    assert [r["id"] for r in rank_startups(startups, None)] == ["s1", "s3", "s2"]

    reqs = [
        _req("r1", "A", created="2026-01-01T00:00:00Z"),
        _req("r2", "B", created="2026-02-01T00:00:00Z"),
    ]
    assert [r["id"] for r in rank_requirements(reqs, "   ")] == ["r2", "r1"]


def test_equal_scores_fall_back_to_created_desc_then_id():
    rows = [
        _req("r2", "AI platform", created="2026-01-01T00:00:00Z"),
        _req("r1", "AI platform", created="2026-01-01T00:00:00Z"),
        _req("r3", "AI platform", created="2026-05-01T00:00:00Z"),
    ]
    assert [r["id"] for r in rank_requirements(rows, "platform")] == ["r3", "r1", "r2"]
