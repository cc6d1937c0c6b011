# petsynth/db/seed.py
"""
Database maintenance commands, registered on the Flask CLI by create_app:

    flask --app run init-db
    flask --app run seed-db
    flask --app run generate-seed-images
"""
import logging
import time

import click
from flask import current_app
from flask.cli import with_appcontext

from petsynth.models import db, Pet, PetStatus

SEED_PETS = [
    {
        "id": "pet-1",
        "name": "Nimbus the Orbital Puff",
        "species": "Zero-G Cloud Ferret",
        "traits": ["buoyant", "electrostatic", "purring"],
        "description": (
            "Nimbus is a semi-coherent puff of ionized fluff that orbits your head at a polite distance, "
            "chirping in Morse when it wants snacks. Its fur is more of a weather pattern than a texture, "
            "occasionally forming mini cumulonimbus for dramatic effect."
        ),
        "care_instructions": [
            "- Ground yourself before petting to avoid micro-lightning cuddles",
            "- Feed with dehydrated rainbows (rehydrate on Tuesdays)",
            "- Do not store near ceiling fans",
            "- If Nimbus splits into two, name the clone immediately to avoid identity drift",
            "- Perform lullaby in Lydian mode nightly",
            "- Schedule solar basking on windowsills during golden hour",
            "- Never mix with helium balloons",
            "- Groom with antistatic gloves only",
        ],
        "price_cents": 48900,
        "image_prompt": (
            "A floating ethereal cloud ferret made of iridescent mist and static electricity, orbiting in mid-air, "
            "soft glowing fur with tiny lightning sparks, whimsical creature, magical atmosphere, studio photography, "
            "centered composition, clean gradient background"
        ),
    },
    {
        "id": "pet-2",
        "name": "Whisper",
        "species": "Theremin Cat",
        "traits": ["melodic", "ethereal", "sensitive", "electromagnetic"],
        "description": (
            "Whisper produces haunting melodies by proximity alone. Wave your hand near its crystalline whiskers "
            "and it hums Debussy. Prefers minor keys and appreciates good reverb. Will judge your taste in music "
            "silently but intensely."
        ),
        "care_instructions": [
            "- Install soundproofing if you have neighbors",
            "- Provide vintage audio equipment for enrichment",
            "- Feed exclusively on moth-wing frequencies",
            "- Tune whiskers weekly with a pitch fork (A440)",
            "- Never expose to dubstep or heavy metal",
            "- Maintain humidity between 40-60% for optimal resonance",
            "- Schedule nightly concerts at 11:00 PM sharp",
            "- Polish antennas with conductive gel monthly",
        ],
        "price_cents": 67500,
        "image_prompt": (
            "A mystical cat with crystalline whiskers that emit sound waves, elegant feline with translucent musical "
            "antennae, ethereal glow, vintage theremin aesthetics, art deco style, centered composition, "
            "professional pet photography"
        ),
    },
    {
        "id": "pet-3",
        "name": "Tick-Tock",
        "species": "Clockwork Axolotl",
        "traits": ["precise", "aquatic", "mechanical", "punctual"],
        "description": (
            "Tick-Tock is a brass and copper amphibian that runs on pure determination and occasional drops of "
            "clock oil. Each gill is a tiny propeller that spins in perfect synchronization. Tells time to the "
            "microsecond and judges you for being late."
        ),
        "care_instructions": [
            "- Wind daily at exactly 8:00 AM (do not be late)",
            "- Clean gears with mineral oil every Sunday",
            "- Submerge in distilled water with precise pH 7.4",
            "- Replace mainspring annually on the vernal equinox",
            "- Provide metronome for companionship",
            "- Polish brass components with jeweler's cloth",
            "- Never wind backwards or time itself may unravel",
            "- Lubricate joints during time zone changes",
        ],
        "price_cents": 89000,
        "image_prompt": (
            "A brass and copper mechanical axolotl with visible clockwork gears, steampunk amphibian with spinning "
            "gill propellers, shiny metallic finish, professional product photography, centered, clean background"
        ),
    },
    {
        "id": "pet-4",
        "name": "Jitter",
        "species": "Caffeine Mole-Rat",
        "traits": ["hyperactive", "nocturnal", "burrowing", "wired"],
        "description": (
            "Jitter subsists entirely on coffee grounds and existential dread. Moves at 4x speed and communicates "
            "in rapid-fire squeaks. Excellent at digging through your inbox, literal dirt, and philosophical "
            "questions about the nature of time."
        ),
        "care_instructions": [
            "- Provide fresh espresso grounds twice daily",
            "- Install tunnel system with at least 40 feet of PVC",
            "- Never offer decaf (this is cruelty)",
            "- Expect no sleep between 11 PM and 5 AM",
            "- Supply tiny sunglasses for light sensitivity",
            "- Rotate coffee bean varieties to prevent flavor boredom",
            "- Provide stress ball for excess energy",
            "- Schedule philosophical discussions during 3 AM zoomies",
        ],
        "price_cents": 34900,
        "image_prompt": (
            "A hyperactive mole-rat vibrating with energy, wearing tiny sunglasses, coffee beans scattered around, "
            "motion blur effect showing extreme speed, comedic energy, studio lighting, centered composition"
        ),
    },
    {
        "id": "pet-5",
        "name": "Ember",
        "species": "Velvet Basilisk",
        "traits": ["regal", "petrifying", "luxurious", "dramatic"],
        "description": (
            "Ember can turn people to stone, but chooses not to because it prefers the aesthetic of living "
            "admirers. Its scales feel like crushed velvet and shimmer like oil on water. Extremely vain and "
            "requires compliments hourly."
        ),
        "care_instructions": [
            "- Wear mirrored sunglasses during eye contact",
            "- Compliment appearance at least 12 times per day",
            "- Feed on quartz crystals and gemstones",
            "- Provide heated basking rock at exactly 95F",
            "- Install full-length mirror for self-admiration",
            "- Brush scales with silk cloth twice weekly",
            "- Never criticize fashion choices",
            "- Maintain a portfolio of glamour shots",
        ],
        "price_cents": 125000,
        "image_prompt": (
            "A regal basilisk lizard covered in luxurious crushed velvet scales that shimmer like oil on water, "
            "elegant pose, full-length mirror in background, dramatic lighting, fashion photography style, "
            "centered composition"
        ),
    },
    {
        "id": "pet-6",
        "name": "Fractal",
        "species": "Recursive Gecko",
        "traits": ["mathematical", "self-similar", "infinite", "contemplative"],
        "description": (
            "Fractal contains infinite smaller copies of itself, each containing infinite smaller copies, ad "
            "infinitum. Excellent at explaining the Mandelbrot set but terrible at fitting through doorways. "
            "Exists in at least 7 dimensions."
        ),
        "care_instructions": [
            "- Feed with non-Euclidean fruit arrangements",
            "- Provide infinite terrarium (4x4 feet will do)",
            "- Never count its scales (you will lose sanity)",
            "- Discuss topology during morning basking",
            "- Rotate habitat 90 degrees in the 4th dimension weekly",
            "- Avoid Boolean logic in its presence",
            "- Provide Klein bottle for water",
            "- Meditate with it during full moons",
        ],
        "price_cents": 99900,
        "image_prompt": (
            "A gecko with fractal patterns repeating infinitely on its scales, each scale contains a smaller "
            "version of itself, Mandelbrot set inspired, iridescent colors, centered composition, clean background"
        ),
    },
]

SEED_IMAGE_PROMPTS = {seed["id"]: seed["image_prompt"] for seed in SEED_PETS}


def seed_pets() -> int:
    """Inserts the seed catalog. Pets that already exist are left untouched. Returns the number inserted."""
    inserted = 0
    for seed in SEED_PETS:
        if db.session.get(Pet, seed["id"]) is not None:
            continue
        pet = Pet(
            id=seed["id"],
            name=seed["name"],
            species=seed["species"],
            description=seed["description"],
            care_instructions="\n".join(seed["care_instructions"]),
            price_cents=seed["price_cents"],
            image_url=f"https://placehold.co/1024x1024?text={seed['name'].split()[0]}",
            status=PetStatus.SEED.value,
            created_by_user_id=None,
        )
        pet.traits = seed["traits"]
        db.session.add(pet)
        inserted += 1
    db.session.commit()
    return inserted


def regenerate_seed_images(image_service, delay_seconds: float = 1.0, sleep=time.sleep):
    """
    Re-creates the image of every seed pet through the configured image provider.
    Pets whose image degraded to a placeholder keep their current URL.
    Returns (updated, failed).
    """
    updated, failed = 0, 0
    for pet in Pet.query.filter_by(status=PetStatus.SEED.value).order_by(Pet.id).all():
        prompt = SEED_IMAGE_PROMPTS.get(pet.id)
        if not prompt:
            logging.warning(f"No image prompt defined for {pet.id} ({pet.name})")
            failed += 1
            continue

        result = image_service.create_image(prompt, name=pet.name, pet_id=pet.id)
        if result.warning:
            logging.warning(f"Image for {pet.id} not regenerated: {result.warning}")
            failed += 1
            continue

        pet.image_url = result.image_url
        db.session.commit()
        updated += 1
        if delay_seconds:
            sleep(delay_seconds)
    return updated, failed


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create all tables."""
    db.create_all()
    click.echo('Database tables created.')


@click.command('seed-db')
@with_appcontext
def seed_db_command():
    """Create tables and insert the seed catalog."""
    db.create_all()
    inserted = seed_pets()
    click.echo(f'Seeded {inserted} pets ({len(SEED_PETS) - inserted} already present).')


@click.command('generate-seed-images')
@click.option('--delay', default=1.0, show_default=True, help='Seconds to wait between provider calls.')
@with_appcontext
def generate_seed_images_command(delay):
    """Regenerate seed pet images with the configured image provider."""
    updated, failed = regenerate_seed_images(current_app.services['image_generation'], delay_seconds=delay)
    click.echo(f'Updated: {updated}  Failed: {failed}')


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_db_command)
    app.cli.add_command(generate_seed_images_command)
