"""Typer-based CLI for generating creatives and managing the per-user gallery."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from adcraft.config import BackendClients, Settings, init_clients, is_available, resolve_gemini_api_key
from adcraft.errors import AdcraftError
from adcraft.exporter import export_gallery
from adcraft.gallery import GalleryService
from adcraft.generator import CreativeGenerator
from adcraft.models import Artifact, GenerationConfig

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="adcraft: AI marketing creatives with a capped personal gallery")

DEFAULT_OUTPUT_ROOT = Path("exports")

USER_OPTION = typer.Option(..., "--user", "-u", help="User id owning the gallery")
DATA_DIR_OPTION = typer.Option(None, "--data-dir", help="Override ADCRAFT_DATA_DIR")


def _echo_step(step: int, total: int, message: str) -> None:
    """Print a normalized progress step line."""
    typer.echo(f"[{step}/{total}] {message}")


def _short_message(exc: Exception) -> str:
    """Return the user-facing text for ``exc``; tracebacks only go to the debug log."""
    if isinstance(exc, AdcraftError):
        return str(exc)
    logger.debug("Unexpected failure", exc_info=exc)
    return f"Unexpected failure ({type(exc).__name__}). Run with --verbose for details."


def _fail(exc: Exception) -> typer.Exit:
    typer.echo(f"Error: {_short_message(exc)}", err=True)
    return typer.Exit(code=1)


def _clients(data_dir: Path | None) -> BackendClients:
    settings = Settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    try:
        return init_clients(settings)
    except Exception as exc:
        raise _fail(exc) from exc


def _echo_gallery(items: list[Artifact]) -> None:
    if not items:
        typer.echo("Gallery is empty.")
        return
    for artifact in items:
        caption = "captioned" if artifact.caption else "no caption"
        typer.echo(
            f"{artifact.id}  {artifact.timestamp}  {artifact.settings.category} / "
            f"{artifact.settings.style} / {artifact.settings.format}  ({caption})"
        )


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("generate")
def generate(
    description: str = typer.Argument(..., help="Scene description"),
    user_id: str = USER_OPTION,
    category: str = typer.Option("Instagram Post", help="Instagram Post, Ad Creative, Web Banner, YouTube Thumbnail"),
    style: str = typer.Option("Cinematic", help="Visual style"),
    mood: str = typer.Option("Balanced", help="Atmosphere / mood"),
    image_format: str = typer.Option("1:1", "--format", help="1:1, 9:16, 4:5, 16:9 or 2:1"),
    niche: str = typer.Option("", help="Target audience or niche"),
    objective: str = typer.Option("High CTR", help="Campaign objective (Ad Creative only)"),
    palette: str = typer.Option("", help="Color palette description"),
    text: str = typer.Option("", "--text", help="Headline rendered on the image"),
    text_position: str = typer.Option("Balanced Composition", help="Text placement"),
    cta: str = typer.Option("", help="Call-to-action text; enables the CTA badge"),
    negative: str = typer.Option("", help="Things the image must avoid"),
    count: int = typer.Option(1, min=1, max=3, help="Number of images"),
    reference: list[Path] = typer.Option([], "--reference", "-r", exists=True, help="Reference image (repeatable)"),
    logo: Path | None = typer.Option(None, exists=True, help="Brand logo image"),
    caption: bool = typer.Option(False, "--caption", help="Also write a caption for each image"),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Generate creatives and save them to the user's gallery."""
    total_steps = 4 if caption else 3
    config = GenerationConfig(
        category=category,
        model_count=count,
        objective=objective,
        niche=niche,
        text_on_image=text,
        text_position=text_position,
        cta_text=cta,
        show_cta=bool(cta),
        color_palette=palette,
        description=description,
        negative_prompt=negative,
        mood=mood,
        style=style,
        format=image_format,
        reference_images=list(reference),
        logo_image=logo,
    )

    _echo_step(1, total_steps, "Preparing backends")
    clients = _clients(data_dir)
    gallery = GalleryService(clients.local, clients.remote)
    generator = CreativeGenerator.from_clients(clients)

    _echo_step(2, total_steps, f"Generating {count} image(s)")
    try:
        artifacts = generator.generate(config)
    except Exception as exc:
        raise _fail(exc) from exc

    _echo_step(3, total_steps, "Saving to gallery")
    for artifact in artifacts:
        try:
            gallery.save(user_id, artifact)
        except Exception as exc:
            raise _fail(exc) from exc
        typer.echo(f"    saved {artifact.id}")

    if caption:
        _echo_step(4, total_steps, "Writing captions")
        for artifact in artifacts:
            try:
                text_caption = generator.generate_caption(artifact.url, niche, objective)
            except Exception as exc:
                typer.echo(f"    caption failed for {artifact.id}: {_short_message(exc)}", err=True)
                continue
            gallery.update_caption(user_id, artifact.id, text_caption)
            typer.echo(f"    captioned {artifact.id}")

    typer.echo(f"Generation complete. user={user_id} images={len(artifacts)}")


@app.command("gallery")
def show_gallery(user_id: str = USER_OPTION, data_dir: Path | None = DATA_DIR_OPTION) -> None:
    """List the user's gallery, newest first."""
    clients = _clients(data_dir)
    _echo_gallery(GalleryService(clients.local, clients.remote).fetch(user_id))


@app.command("caption")
def caption_command(
    artifact_id: str = typer.Argument(..., help="Artifact id from the gallery"),
    user_id: str = USER_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Write a caption for one gallery item."""
    clients = _clients(data_dir)
    gallery = GalleryService(clients.local, clients.remote)
    artifact = next((item for item in gallery.fetch(user_id) if item.id == artifact_id), None)
    if artifact is None:
        raise typer.BadParameter(f"Artifact not found: {artifact_id}")

    try:
        text = CreativeGenerator.from_clients(clients).generate_caption(
            artifact.url, artifact.settings.niche, artifact.settings.objective
        )
    except Exception as exc:
        raise _fail(exc) from exc

    gallery.update_caption(user_id, artifact_id, text)
    typer.echo(text)


@app.command("delete")
def delete(
    artifact_id: str = typer.Argument(..., help="Artifact id from the gallery"),
    user_id: str = USER_OPTION,
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Remove one item from the gallery."""
    clients = _clients(data_dir)
    remaining = GalleryService(clients.local, clients.remote).delete(user_id, artifact_id)
    typer.echo(f"Deleted {artifact_id}. {len(remaining)} item(s) left.")


@app.command("clear")
def clear(
    user_id: str = USER_OPTION,
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation"),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Delete the whole gallery of a user."""
    if not yes:
        typer.confirm(f"Delete every creative of {user_id}?", abort=True)
    clients = _clients(data_dir)
    GalleryService(clients.local, clients.remote).clear(user_id)
    typer.echo(f"Gallery cleared for {user_id}.")


@app.command("enhance")
def enhance(
    description: str = typer.Argument(..., help="Short scene description"),
    category: str = typer.Option("Instagram Post", help="Creative category"),
    style: str = typer.Option("Cinematic", help="Visual style"),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Rewrite a short description into a detailed prompt."""
    clients = _clients(data_dir)
    try:
        typer.echo(CreativeGenerator.from_clients(clients).enhance_prompt(description, category, style))
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("analyze-brand")
def analyze_brand(
    images: list[Path] = typer.Argument(..., exists=True, help="Brand images to analyze"),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Suggest palette, style and niche from existing brand images."""
    clients = _clients(data_dir)
    try:
        analysis = CreativeGenerator.from_clients(clients).analyze_brand_assets(images)
    except Exception as exc:
        raise _fail(exc) from exc
    typer.echo(f"Palette: {analysis.palette}")
    typer.echo(f"Style: {analysis.style}")
    typer.echo(f"Niche: {analysis.niche_suggestion}")


@app.command("export")
def export(
    user_id: str = USER_OPTION,
    output_root: Path = typer.Option(DEFAULT_OUTPUT_ROOT, help="Export output directory"),
    data_dir: Path | None = DATA_DIR_OPTION,
) -> None:
    """Write the gallery images and indexes to disk."""
    clients = _clients(data_dir)
    items = GalleryService(clients.local, clients.remote).fetch(user_id)
    try:
        out_dir = export_gallery(items, output_root, user_id)
    except Exception as exc:
        raise _fail(exc) from exc
    typer.echo(f"Exported {len(items)} item(s) to: {out_dir}")


@app.command("doctor")
def doctor(data_dir: Path | None = DATA_DIR_OPTION) -> None:
    """Print local environment diagnostics used by the CLI."""
    clients = _clients(data_dir)
    typer.echo(f"Local DB: {clients.settings.local_db_path}")
    typer.echo(f"Remote gallery configured: {is_available(clients)}")
    typer.echo(f"GEMINI_API_KEY set: {bool(resolve_gemini_api_key())}")


if __name__ == "__main__":
    app()
