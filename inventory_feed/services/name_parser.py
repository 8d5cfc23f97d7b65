import re

from inventory_feed.schemas.catalog import NormalizedName

# Brand keywords, multi-word names first
_BRANDS: list[tuple[str, str]] = [
    (r"new balance", "New Balance"),
    (r"a bathing ape", "Bape"),
    (r"under armour", "Under Armour"),
    (r"dr\.? martens", "Dr. Martens"),
    (r"off-?white", "Off-White"),
    (r"nike", "Nike"),
    (r"jordan", "Jordan"),
    (r"adidas", "Adidas"),
    (r"asics", "Asics"),
    (r"puma", "Puma"),
    (r"reebok", "Reebok"),
    (r"converse", "Converse"),
    (r"vans", "Vans"),
    (r"bape", "Bape"),
    (r"balenciaga", "Balenciaga"),
    (r"saucony", "Saucony"),
    (r"hoka", "Hoka"),
    (r"salomon", "Salomon"),
    (r"crocs", "Crocs"),
    (r"timberland", "Timberland"),
]

# Model names and nicknames that imply a parent brand
BRAND_ALIASES: dict[str, str] = {
    "af1": "Nike",
    "air force": "Nike",
    "air force 1": "Nike",
    "air max": "Nike",
    "dunk": "Nike",
    "sb dunk": "Nike",
    "lebron": "Nike",
    "kobe": "Nike",
    "jumpman": "Jordan",
    "yeezy": "Adidas",
    "bapesta": "Bape",
    "bapestas": "Bape",
    "chuck taylor": "Converse",
}

# (pattern, canonical name, brand); order matters, longer phrases first.
# A canonical of None title-cases the matched text; named groups fill templates.
_MODELS: list[tuple[str, str | None, str]] = [
    (r"air force 1|af-?1", "Air Force 1", "Nike"),
    (r"air max (?P<n>90|95|97|1|270|plus)", "Air Max {n}", "Nike"),
    (r"sb dunk (?P<cut>low|high)", None, "Nike"),
    (r"dunk (?P<cut>low|high)", None, "Nike"),
    (r"dunk", "Dunk", "Nike"),
    (r"lebron (?P<n>\d{1,2})", "LeBron {n}", "Nike"),
    (r"kobe (?P<n>\d{1,2})", "Kobe {n}", "Nike"),
    (r"air jordan (?P<n>\d{1,2})", "Air Jordan {n}", "Jordan"),
    (r"jordan (?P<n>\d{1,2})", "Jordan {n}", "Jordan"),
    (r"yeezy boost (?P<n>350|700)(?: v2)?", None, "Adidas"),
    (r"yeezy slide", "Yeezy Slide", "Adidas"),
    (r"yeezy (?P<n>\d{3})(?: v\d)?", None, "Adidas"),
    (r"ultra ?boost", "Ultraboost", "Adidas"),
    (r"stan smith", "Stan Smith", "Adidas"),
    (r"samba", "Samba", "Adidas"),
    (r"gazelle", "Gazelle", "Adidas"),
    (r"forum (?:low|high)", None, "Adidas"),
    (r"campus 00s", "Campus 00s", "Adidas"),
    (r"chuck taylor(?: all star)?", "Chuck Taylor All Star", "Converse"),
    (r"chuck 70", "Chuck 70", "Converse"),
    (r"old skool", "Old Skool", "Vans"),
    (r"sk8-?hi", "Sk8-Hi", "Vans"),
    (r"2002r|9060|990v\d|990|550|530|327", None, "New Balance"),
    (r"gel-?lyte(?: iii)?", "Gel-Lyte III", "Asics"),
    (r"gel-?kayano (?P<n>\d{1,2})", "Gel-Kayano {n}", "Asics"),
    (r"bapestas?", "Bapesta", "Bape"),
    (r"triple s", "Triple S", "Balenciaga"),
    (r"speed trainer", "Speed Trainer", "Balenciaga"),
    (r"club c(?: 85)?", "Club C 85", "Reebok"),
    (r"clifton (?P<n>\d{1,2})", "Clifton {n}", "Hoka"),
    (r"xt-6", "XT-6", "Salomon"),
]

_SIZE_PATTERNS = [
    re.compile(r"\b(?:size|sz)\.?\s*:?\s*(\d{1,2}(?:\.5)?\s?[YCWM]?)(?![\w.])", re.IGNORECASE),
    re.compile(r"\bUS\s*(?:M|W)?\s*(\d{1,2}(?:\.5)?)(?![\w.])", re.IGNORECASE),
    re.compile(r"\((\d{1,2}(?:\.5)?[YCWM]?)\)", re.IGNORECASE),
    re.compile(r"\b(\d{1,2}(?:\.5)?[YCWM])(?![\w.])", re.IGNORECASE),
]

_SIZE_SUFFIX_VARIANTS = {"W": "Women's", "M": "Men's"}

_VARIANTS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\bGS\b", re.IGNORECASE), "GS"),
    (re.compile(r"\bPS\b", re.IGNORECASE), "PS"),
    (re.compile(r"\bTD\b", re.IGNORECASE), "TD"),
    (re.compile(r"\b(?:wmns|women'?s|womens)(?!\w)", re.IGNORECASE), "Women's"),
    (re.compile(r"\b(?:men'?s|mens)(?!\w)", re.IGNORECASE), "Men's"),
    (re.compile(r"\byouth\b", re.IGNORECASE), "Youth"),
    (re.compile(r"\bkids\b", re.IGNORECASE), "Kids"),
]

COLOR_WORDS = {
    "white", "black", "red", "blue", "green", "grey", "gray", "pink", "purple",
    "yellow", "orange", "brown", "tan", "cream", "beige", "navy", "olive",
    "silver", "gold", "multi", "multicolor", "university", "royal", "sail",
    "bone", "triple",
}

# listing words that carry nothing about the product itself
_NOISE_WORDS = {
    "ds", "vnds", "nwt", "nib", "deadstock", "brand", "new", "sneaker",
    "sneakers", "shoe", "shoes", "size", "sz", "-", "/", "|",
}

_BRAND_RES = [(re.compile(rf"\b{p}\b", re.IGNORECASE), name) for p, name in _BRANDS]
_MODEL_RES = [(re.compile(rf"\b(?:{p})\b", re.IGNORECASE), canon, brand) for p, canon, brand in _MODELS]
_ALIAS_RES = sorted(
    ((re.compile(rf"\b{re.escape(alias)}\b", re.IGNORECASE), brand) for alias, brand in BRAND_ALIASES.items()),
    key=lambda pair: -len(pair[0].pattern),
)


def _titleize(text: str) -> str:
    words = []
    for word in text.split():
        if word.lower() in {"sb", "og", "se"} or any(c.isdigit() for c in word):
            words.append(word.upper())
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def _cut(text: str, match: re.Match) -> str:
    return f"{text[:match.start()]} {text[match.end():]}"


def _extract_size(text: str) -> tuple[str | None, str | None, str]:
    """Return (size, size-implied variant, remaining text)."""
    for pattern in _SIZE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        value = match.group(1).replace(" ", "").upper()
        variant = None
        if value[-1] in _SIZE_SUFFIX_VARIANTS:
            variant = _SIZE_SUFFIX_VARIANTS[value[-1]]
            value = value[:-1]
        return value, variant, _cut(text, match)
    return None, None, text


def _extract_model(text: str) -> tuple[str | None, str | None, str]:
    """Return (model, implied brand, remaining text) from the model vocabulary."""
    for pattern, canonical, brand in _MODEL_RES:
        match = pattern.search(text)
        if not match:
            continue
        if canonical is None:
            model = _titleize(match.group(0))
        else:
            model = canonical.format(**{k: v for k, v in match.groupdict().items() if v})
        return model, brand, _cut(text, match)
    return None, None, text


def _extract_brand(text: str) -> tuple[str | None, str]:
    for pattern, name in _BRAND_RES:
        match = pattern.search(text)
        if match:
            return name, _cut(text, match)
    return None, text


def brand_from_alias(text: str) -> str | None:
    for pattern, brand in _ALIAS_RES:
        if pattern.search(text):
            return brand
    return None


def normalize_brand(brand: str) -> str:
    """Map a brand or model nickname ("af1", "yeezy") onto its parent brand name."""
    cleaned = brand.strip()
    lowered = cleaned.lower()
    if lowered in BRAND_ALIASES:
        return BRAND_ALIASES[lowered]
    for pattern, name in _BRAND_RES:
        if pattern.fullmatch(cleaned):
            return name
    return cleaned


def parse_product_name(raw_name: str | None) -> NormalizedName:
    """Deterministically split a free-text listing name into brand/model/size/variant.

    Never raises; an empty name yields an empty NormalizedName.
    """
    text = " ".join((raw_name or "").split())
    if not text:
        return NormalizedName()

    size, variant, rest = _extract_size(text)

    for pattern, name in _VARIANTS:
        match = pattern.search(rest)
        if match:
            variant = variant or name
            rest = _cut(rest, match)
            break

    model, model_brand, rest = _extract_model(rest)
    brand, rest = _extract_brand(rest)
    brand = brand or model_brand or brand_from_alias(text)

    leftover = [
        token.strip(",;|()[]")
        for token in rest.split()
        if token.strip(",;|()[]").lower() not in _NOISE_WORDS
    ]
    leftover = [token for token in leftover if token]

    if model is None:
        model_tokens = [t for t in leftover if t.lower() not in COLOR_WORDS]
        leftover = [t for t in leftover if t.lower() in COLOR_WORDS]
        model = " ".join(model_tokens) or None

    query_brand = brand
    if brand and model and model.casefold().startswith(brand.casefold()):
        query_brand = None
    search_query = " ".join(part for part in [query_brand, model, *leftover] if part) or None

    return NormalizedName(
        brand=brand,
        model=model,
        size=size,
        variant=variant,
        search_query=search_query,
    )
