import re

import pytest

from storage_backend.policies.access_policy import (
    DELETE_OBJECT,
    GET_OBJECT,
    LIST_BUCKET,
    PUT_OBJECT,
    SELF_TOKEN,
    IdentityRole,
    authenticated_policy,
    build_access_policies,
    container_arn,
    object_arn,
    unauthenticated_policy,
)

CONTAINER_NAMES = ["demo-bucket", "product-bucket-1a2b3c", "${Token[TOKEN.123]}"]


@pytest.mark.parametrize("name", CONTAINER_NAMES)
def test_unauthenticated_actions_are_subset_of_authenticated(name):
    policies = build_access_policies(name)
    unauth = policies[IdentityRole.UNAUTHENTICATED]
    auth = policies[IdentityRole.AUTHENTICATED]

    for resource in unauth.resources():
        assert unauth.actions_for(resource) <= auth.actions_for(resource)


@pytest.mark.parametrize("name", CONTAINER_NAMES)
def test_private_paths_always_carry_self_token(name):
    for document in build_access_policies(name).values():
        texts = [s.resource for s in document.statements]
        texts.extend(document.list_prefixes())
        for text in texts:
            for match in re.finditer(r"private/", text):
                rest = text[match.end():]
                assert rest.startswith(SELF_TOKEN), text


def test_unauthenticated_list_prefixes():
    assert unauthenticated_policy("demo-bucket").list_prefixes() == {
        "public/", "public/*", "protected/", "protected/*",
    }


def test_authenticated_list_prefixes_extend_unauthenticated():
    unauth = unauthenticated_policy("demo-bucket").list_prefixes()
    auth = authenticated_policy("demo-bucket").list_prefixes()

    assert auth == unauth | {f"private/{SELF_TOKEN}/", f"private/{SELF_TOKEN}/*"}


def test_list_statement_targets_bucket_root():
    document = unauthenticated_policy("demo-bucket")
    list_statements = [s for s in document.statements if LIST_BUCKET in s.actions]

    assert len(list_statements) == 1
    assert list_statements[0].resource == "arn:aws:s3:::demo-bucket"


def test_regeneration_is_idempotent():
    first = build_access_policies("demo-bucket")
    second = build_access_policies("demo-bucket")

    for role in IdentityRole:
        assert set(first[role].statements) == set(second[role].statements)


def test_statement_order_does_not_affect_equality():
    document = authenticated_policy("demo-bucket")
    reordered = tuple(reversed(document.statements))

    assert set(reordered) == set(document.statements)


def test_rendered_document_is_detached_from_model():
    document = authenticated_policy("demo-bucket")
    before = document.list_prefixes()

    rendered = document.to_dict()
    rendered["Statement"][-1]["Condition"]["StringLike"]["s3:prefix"].append("private/*")
    rendered["Statement"][0]["Action"].append("s3:PutBucketPolicy")

    assert document.list_prefixes() == before
    assert "private/*" not in document.statements[-1].list_prefixes
    assert "s3:PutBucketPolicy" not in document.statements[0].actions


def test_condition_block_is_fresh_on_every_access():
    statement = unauthenticated_policy("demo-bucket").statements[-1]

    statement.conditions["StringLike"]["s3:prefix"].clear()

    assert statement.conditions["StringLike"]["s3:prefix"] == [
        "public/", "public/*", "protected/", "protected/*",
    ]


def test_authenticated_owns_protected_segment():
    document = authenticated_policy("demo-bucket")
    resource = f"arn:aws:s3:::demo-bucket/protected/{SELF_TOKEN}/*"

    assert document.actions_for(resource) == {PUT_OBJECT, GET_OBJECT, DELETE_OBJECT}


def test_authenticated_cannot_write_other_private_segments():
    document = authenticated_policy("demo-bucket")
    writes = {PUT_OBJECT, GET_OBJECT, DELETE_OBJECT}

    for statement in document.statements:
        if "/private/" in statement.resource:
            assert statement.resource == f"arn:aws:s3:::demo-bucket/private/{SELF_TOKEN}/*"
    assert not document.actions_for("arn:aws:s3:::demo-bucket/private/*") & writes
    assert not document.actions_for(
        "arn:aws:s3:::demo-bucket/private/us-east-1:other-identity/*"
    )


def test_protected_read_is_open_to_every_signed_in_user():
    document = authenticated_policy("demo-bucket")

    assert document.actions_for("arn:aws:s3:::demo-bucket/protected/*") == {GET_OBJECT}


def test_unauthenticated_is_read_only():
    document = unauthenticated_policy("demo-bucket")
    granted = set()
    for statement in document.statements:
        granted.update(statement.actions)

    assert granted == {GET_OBJECT, LIST_BUCKET}


def test_self_token_left_unexpanded_in_rendered_document():
    rendered = authenticated_policy("demo-bucket").to_dict()

    assert rendered["Version"] == "2012-10-17"
    resources = [s["Resource"] for s in rendered["Statement"]]
    assert f"arn:aws:s3:::demo-bucket/private/{SELF_TOKEN}/*" in resources
    assert all(s["Effect"] == "Allow" for s in rendered["Statement"])


def test_condition_only_rendered_when_present():
    statements = unauthenticated_policy("demo-bucket").to_dict()["Statement"]

    assert "Condition" not in statements[0]
    assert statements[-1]["Condition"] == {
        "StringLike": {"s3:prefix": ["public/", "public/*", "protected/", "protected/*"]}
    }


def test_arn_helpers():
    assert container_arn("demo-bucket") == "arn:aws:s3:::demo-bucket"
    assert object_arn("demo-bucket", "public/*") == "arn:aws:s3:::demo-bucket/public/*"
