import hashlib

from app.crypto.proof import compute_proof, proofs_match


def test_proof_is_sha256_of_concatenation():
    assert compute_proof("a", "b", "c") == (
        "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )
    assert compute_proof("Tok1", "Tok2", "pw") == hashlib.sha256(b"Tok1Tok2pw").hexdigest()


def test_proof_is_deterministic():
    assert compute_proof("x1y2z3a", "q9w8e7r", "hunter2") == compute_proof(
        "x1y2z3a", "q9w8e7r", "hunter2"
    )


def test_proof_depends_on_secret():
    assert compute_proof("x1y2z3a", "q9w8e7r", "hunter2") != compute_proof(
        "x1y2z3a", "q9w8e7r", "hunter3"
    )


def test_proof_depends_on_token_order():
    assert compute_proof("x1y2z3a", "q9w8e7r", "s") != compute_proof("q9w8e7r", "x1y2z3a", "s")


def test_proofs_match():
    digest = compute_proof("a", "b", "c")
    assert proofs_match(digest, digest)
    assert not proofs_match(digest, digest.upper())
    assert not proofs_match(digest, "")
