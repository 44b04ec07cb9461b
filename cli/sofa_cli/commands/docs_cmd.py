from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Any

import typer

from .. import console
from ..http import connected

app = typer.Typer(help="Document and attachment commands.")


def _load_body(data: str | None, file: Path | None) -> Any:
    if (data is None) == (file is None):
        console.err("Pass exactly one of --data or --file.")
        raise typer.Exit(code=2)
    raw = data if data is not None else file.read_text(encoding="utf-8")
    try:
        return json.loads(raw)
    except ValueError as e:
        console.err(f"Document is not valid JSON: {e}")
        raise typer.Exit(code=2)


@app.command("get")
def get_doc(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Reading {doc_id}", base_url=base_url) as conn:
        doc, rev = conn.select_db(db).read(doc_id)
    console.print_json({"_id": doc_id, "_rev": rev, **doc})


@app.command("put")
def put_doc(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    data: str | None = typer.Option(None, "--data", help="Document JSON."),
    file: Path | None = typer.Option(None, "--file", exists=True, dir_okay=False, help="Read document JSON from file."),
    rev: str = typer.Option("", "--rev", help="Current revision (omit for a new document)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    body = _load_body(data, file)
    if isinstance(body, dict):
        rev = rev or str(body.pop("_rev", "") or "")
        body.pop("_id", None)
    with connected(f"Saving {doc_id}", base_url=base_url) as conn:
        new_rev = conn.select_db(db).save(body, doc_id, rev)
    console.ok(f"{doc_id} saved, rev {new_rev}")


@app.command("delete")
def delete_doc(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    rev: str = typer.Option(..., "--rev", help="Current revision."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Deleting {doc_id}", base_url=base_url) as conn:
        new_rev = conn.select_db(db).delete(doc_id, rev)
    console.ok(f"{doc_id} deleted, rev {new_rev}")


@app.command("copy")
def copy_doc(
    db: str = typer.Argument(..., help="Database name."),
    from_id: str = typer.Argument(..., help="Source document id."),
    to_id: str = typer.Argument(..., help="Destination document id."),
    rev: str = typer.Option("", "--rev", help="Source revision to copy."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Copying {from_id}", base_url=base_url) as conn:
        new_rev = conn.select_db(db).copy(from_id, to_id, rev)
    console.ok(f"{from_id} copied to {to_id}, rev {new_rev}")


@app.command("attach")
def attach(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to upload."),
    rev: str = typer.Option(..., "--rev", help="Current document revision."),
    name: str | None = typer.Option(None, "--name", help="Attachment name (defaults to the file name)."),
    content_type: str | None = typer.Option(None, "--content-type", help="MIME type (guessed from the file name)."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    att_name = name or file.name
    mime = content_type or mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    with connected(f"Attaching {att_name}", base_url=base_url) as conn, file.open("rb") as f:
        new_rev = conn.select_db(db).save_attachment(doc_id, rev, att_name, mime, f)
    console.ok(f"{att_name} attached to {doc_id}, rev {new_rev}")


@app.command("download")
def download(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    name: str = typer.Argument(..., help="Attachment name."),
    output: Path = typer.Option(..., "--output", "-o", dir_okay=False, help="Where to write the attachment."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    size = 0
    with connected(f"Downloading {name}", base_url=base_url) as conn:
        with conn.select_db(db).get_attachment(doc_id, name) as stream, output.open("wb") as f:
            for chunk in stream.iter_bytes():
                f.write(chunk)
                size += len(chunk)
    console.ok(f"{name} written to {output} ({size} bytes)")


@app.command("detach")
def detach(
    db: str = typer.Argument(..., help="Database name."),
    doc_id: str = typer.Argument(..., help="Document id."),
    name: str = typer.Argument(..., help="Attachment name."),
    rev: str = typer.Option(..., "--rev", help="Current document revision."),
    base_url: str | None = typer.Option(None, "--base-url", help="Override base URL."),
):
    with connected(f"Removing {name}", base_url=base_url) as conn:
        new_rev = conn.select_db(db).delete_attachment(doc_id, rev, name)
    console.ok(f"{name} removed from {doc_id}, rev {new_rev}")
