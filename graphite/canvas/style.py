from dataclasses import dataclass


@dataclass(frozen=True)
class StyleConfig:
    """Пресет стиля рисования. Замена пресета — атомарная, без интерполяции."""

    # Какие сигналы управляют кистью
    pressure_from_audio: bool
    width_from_hand_speed: bool
    opacity_from_face_tilt: bool
    smudge_from_stillness: bool

    # Чувствительность и пороги
    audio_sensitivity: float
    hand_speed_sensitivity: float
    face_tilt_sensitivity: float
    smudge_threshold: float

    # Внешний вид
    base_width: float
    base_opacity: float
    texture_amount: float

    # Динамика курсора
    inertia: float
    jitter: float

    # Случайное "стирание"
    occasional_erase: bool
    erase_threshold: float


def charcoal() -> StyleConfig:
    return StyleConfig(
        pressure_from_audio=True,
        width_from_hand_speed=True,
        opacity_from_face_tilt=True,
        smudge_from_stillness=True,
        audio_sensitivity=2.0,
        hand_speed_sensitivity=1.2,
        face_tilt_sensitivity=1.0,
        smudge_threshold=0.25,
        base_width=1.8,
        base_opacity=0.7,
        texture_amount=0.6,
        inertia=0.7,
        jitter=0.2,
        occasional_erase=True,
        erase_threshold=0.92,
    )


def randomize(rng) -> StyleConfig:
    """Новый случайный пресет. Каждое поле разыгрывается независимо."""
    r = rng.random
    return StyleConfig(
        pressure_from_audio=r() > 0.5,
        width_from_hand_speed=r() > 0.3,
        opacity_from_face_tilt=r() > 0.4,
        smudge_from_stillness=r() > 0.2,
        audio_sensitivity=0.5 + r() * 2,
        hand_speed_sensitivity=0.2 + r() * 1.5,
        face_tilt_sensitivity=0.5 + r(),
        base_width=0.5 + r() * 1.5,
        base_opacity=0.3 + r() * 0.5,
        texture_amount=r() * 0.7,
        smudge_threshold=0.1 + r() * 0.3,
        inertia=0.5 + r() * 0.4,
        jitter=r() * 0.3,
        occasional_erase=r() > 0.7,
        erase_threshold=0.85 + r() * 0.1,
    )
