import random
from typing import Optional, Sequence

from adhdo.models.schemas import AdvertConfiguration

_TIDY_UP = "Just tidy up and organize."

ADVERT_LIST = (
    AdvertConfiguration(title="Clean up the living room", description=_TIDY_UP),
    AdvertConfiguration(title="Clean up the kitchen", description=_TIDY_UP),
    AdvertConfiguration(title="Clean up the workplace", description=_TIDY_UP),
    AdvertConfiguration(title="Clean up the bed room", description=_TIDY_UP),
    AdvertConfiguration(title="Clean up the wardrobe", description=_TIDY_UP),
    AdvertConfiguration(title="Clean up the car", description=_TIDY_UP),
)

def pick_random_advert(
    catalog: Sequence[AdvertConfiguration] = ADVERT_LIST,
    rng: Optional[random.Random] = None,
) -> AdvertConfiguration:
    """Returns a uniformly random entry from a non-empty catalog."""
    if not catalog:
        raise ValueError("advert catalog is empty")
    return (rng or random).choice(catalog)
