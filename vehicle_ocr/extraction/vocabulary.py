"""Fixed vocabularies used by the field extractor."""

VIETNAMESE_UPPER = "ÀÁẢÃẠĂẰẮẲẴẶÂẦẤẨẪẬÈÉẺẼẸÊỀẾỂỄỆÌÍỈĨỊÒÓỎÕỌÔỒỐỔỖỘƠỜỚỞỠỢÙÚỦŨỤƯỪỨỬỮỰỲÝỶỸỴĐ"
VIETNAMESE_LOWER = VIETNAMESE_UPPER.lower()

UPPER_LETTERS = "A-Z" + VIETNAMESE_UPPER
LOWER_LETTERS = "a-z" + VIETNAMESE_LOWER
LETTERS = UPPER_LETTERS + LOWER_LETTERS

KNOWN_BRANDS: tuple[str, ...] = (
    "HONDA",
    "YAMAHA",
    "SUZUKI",
    "PIAGGIO",
    "VESPA",
    "SYM",
    "KYMCO",
    "TOYOTA",
    "HYUNDAI",
    "KIA",
    "MAZDA",
    "FORD",
    "VINFAST",
    "MERCEDES",
    "BMW",
    "AUDI",
    "LEXUS",
    "MITSUBISHI",
    "NISSAN",
    "CHEVROLET",
)

# Folded, separator-free token -> display value.
COLOR_DICTIONARY: dict[str, str] = {
    "XAM": "Xám",
    "GRAY": "Xám",
    "GREY": "Xám",
    "XAMDEN": "Xám Đen",
    "DO": "Đỏ",
    "RED": "Đỏ",
    "TRANG": "Trắng",
    "WHITE": "Trắng",
    "DEN": "Đen",
    "BLACK": "Đen",
    "XANH": "Xanh",
    "BLUE": "Xanh",
    "BAC": "Bạc",
    "SILVER": "Bạc",
    "VANG": "Vàng",
    "YELLOW": "Vàng",
}

# Folded color tokens that are also everyday Vietnamese words once their
# accents are gone ("đến", "do", "Bắc", "trang"). A whole-text scan only
# accepts them when the accented color word itself is present.
AMBIGUOUS_COLOR_KEYS = frozenset({"DO", "DEN", "BAC", "TRANG"})

# Folded words of certificate labels; never a color value.
LABEL_WORDS = frozenset(
    {
        "SO",
        "KHUNG",
        "CHASSIS",
        "MAY",
        "ENGINE",
        "NO",
        "NHAN",
        "HIEU",
        "BRAND",
        "LOAI",
        "XE",
        "TYPE",
        "MODEL",
        "MAU",
        "SON",
        "COLOR",
        "DUNG",
        "TICH",
        "CAPACITY",
        "HOAT",
        "DONG",
        "BIEN",
        "DANG",
        "KY",
        "PLATE",
    }
)
