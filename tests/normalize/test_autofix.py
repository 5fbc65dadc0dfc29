# tests/normalize/test_autofix.py
"""
Testes do autofix de distribuições CloudFront.

Invariantes:
    - Mapeamentos `produces` ausentes são adicionados ao primeiro create
    - Mapeamentos existentes nunca são sobrescritos
    - Uma espera `distribution-deployed` é acrescentada ao final quando ausente
    - Planos sem criação de distribuição são devolvidos intactos
"""

from planguard.normalize.autofix import (
    DEFAULT_PRODUCES,
    WAIT_REASON,
    apply_distribution_autofix,
    find_distribution_create,
)


def test_fills_all_mappings_and_appends_wait(cmd, make_plan):
    origin = cmd("ec2", "describe-instances", produces={"PUBLIC_DNS": "$.dns"})
    create = cmd("cloudfront", "create-distribution", "--origin-domain-name", "<PUBLIC_DNS>")
    plan = make_plan(origin, create)

    out, fixes = apply_distribution_autofix(plan)

    assert fixes == [
        "added CLOUDFRONT_ID produce mapping",
        "added CLOUDFRONT_DOMAIN produce mapping",
        "added HTTPS_URL produce mapping",
        "appended missing cloudfront wait distribution-deployed",
    ]
    assert out.commands[1].produces == DEFAULT_PRODUCES
    assert out.commands[1].produces["HTTPS_URL"] == "https://<CLOUDFRONT_DOMAIN>"

    wait = out.commands[-1]
    assert wait.args == ("cloudfront", "wait", "distribution-deployed", "--id", "<CLOUDFRONT_ID>")
    assert wait.reason == WAIT_REASON
    assert len(out) == 3

    # entrada intacta
    assert plan.commands[1].produces == {}
    assert len(plan) == 2


def test_existing_mappings_are_never_overwritten(cmd, make_plan):
    create = cmd(
        "cloudfront",
        "create-distribution-with-tags",
        produces={"CLOUDFRONT_ID": "$.Distribution.Id", "CLOUDFRONT_DOMAIN": "$.Custom.Domain"},
    )

    out, fixes = apply_distribution_autofix(make_plan(create))

    assert fixes == [
        "added HTTPS_URL produce mapping",
        "appended missing cloudfront wait distribution-deployed",
    ]
    assert out.commands[0].produces["CLOUDFRONT_DOMAIN"] == "$.Custom.Domain"


def test_alternate_id_key_is_used_for_wait(cmd, make_plan):
    create = cmd(
        "cloudfront",
        "create-distribution",
        produces={"CF_DISTRIBUTION_ID": "$.Distribution.Id"},
    )

    out, fixes = apply_distribution_autofix(make_plan(create))

    assert "CLOUDFRONT_ID" not in out.commands[0].produces
    assert "added CLOUDFRONT_ID produce mapping" not in fixes
    assert out.commands[-1].args[-1] == "<CF_DISTRIBUTION_ID>"


def test_existing_wait_is_not_duplicated(cmd, make_plan):
    create = cmd("cloudfront", "create-distribution", produces=dict(DEFAULT_PRODUCES))
    wait = cmd("cloudfront", "wait", "distribution-deployed", "--id", "<CLOUDFRONT_ID>")
    plan = make_plan(create, wait)

    out, fixes = apply_distribution_autofix(plan)

    assert fixes == []
    assert out is plan


def test_autofix_is_idempotent(cmd, make_plan):
    once, _ = apply_distribution_autofix(make_plan(cmd("cloudfront", "create-distribution")))
    twice, fixes = apply_distribution_autofix(once)

    assert fixes == []
    assert twice == once


def test_no_distribution_is_noop(cmd, make_plan):
    plan = make_plan(cmd("ec2", "run-instances"), cmd("cloudfront", "list-distributions"))

    assert find_distribution_create(plan) == -1
    out, fixes = apply_distribution_autofix(plan)
    assert out is plan
    assert fixes == []
