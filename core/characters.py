"""Kana character rows used to constrain generated vocabulary."""

from .models import LearningType

HIRAGANA_ROWS = [
    {'id': 'vowels', 'label': 'Vowels (A, I, U, E, O)', 'characters': ['あ', 'い', 'う', 'え', 'お'], 'romaji': ['a', 'i', 'u', 'e', 'o']},
    {'id': 'k_row', 'label': 'K-Row (Ka, Ki, Ku, Ke, Ko)', 'characters': ['か', 'き', 'く', 'け', 'こ'], 'romaji': ['ka', 'ki', 'ku', 'ke', 'ko']},
    {'id': 's_row', 'label': 'S-Row (Sa, Shi, Su, Se, So)', 'characters': ['さ', 'し', 'す', 'せ', 'そ'], 'romaji': ['sa', 'shi', 'su', 'se', 'so']},
    {'id': 't_row', 'label': 'T-Row (Ta, Chi, Tsu, Te, To)', 'characters': ['た', 'ち', 'つ', 'て', 'と'], 'romaji': ['ta', 'chi', 'tsu', 'te', 'to']},
    {'id': 'n_row', 'label': 'N-Row (Na, Ni, Nu, Ne, No)', 'characters': ['な', 'に', 'ぬ', 'ね', 'の'], 'romaji': ['na', 'ni', 'nu', 'ne', 'no']},
    {'id': 'h_row', 'label': 'H-Row (Ha, Hi, Fu, He, Ho)', 'characters': ['は', 'ひ', 'ふ', 'へ', 'ほ'], 'romaji': ['ha', 'hi', 'fu', 'he', 'ho']},
    {'id': 'm_row', 'label': 'M-Row (Ma, Mi, Mu, Me, Mo)', 'characters': ['ま', 'み', 'む', 'め', 'も'], 'romaji': ['ma', 'mi', 'mu', 'me', 'mo']},
    {'id': 'y_row', 'label': 'Y-Row (Ya, Yu, Yo)', 'characters': ['や', 'ゆ', 'よ'], 'romaji': ['ya', 'yu', 'yo']},
    {'id': 'r_row', 'label': 'R-Row (Ra, Ri, Ru, Re, Ro)', 'characters': ['ら', 'り', 'る', 'れ', 'ろ'], 'romaji': ['ra', 'ri', 'ru', 're', 'ro']},
    {'id': 'w_row', 'label': 'W-Row (Wa, Wo, N)', 'characters': ['わ', 'を', 'ん'], 'romaji': ['wa', 'wo', 'n']},
]

KATAKANA_ROWS = [
    {'id': 'vowels', 'label': 'Vowels (A, I, U, E, O)', 'characters': ['ア', 'イ', 'ウ', 'エ', 'オ'], 'romaji': ['a', 'i', 'u', 'e', 'o']},
    {'id': 'k_row', 'label': 'K-Row (Ka, Ki, Ku, Ke, Ko)', 'characters': ['カ', 'キ', 'ク', 'ケ', 'コ'], 'romaji': ['ka', 'ki', 'ku', 'ke', 'ko']},
    {'id': 's_row', 'label': 'S-Row (Sa, Shi, Su, Se, So)', 'characters': ['サ', 'シ', 'ス', 'セ', 'ソ'], 'romaji': ['sa', 'shi', 'su', 'se', 'so']},
    {'id': 't_row', 'label': 'T-Row (Ta, Chi, Tsu, Te, To)', 'characters': ['タ', 'チ', 'ツ', 'テ', 'ト'], 'romaji': ['ta', 'chi', 'tsu', 'te', 'to']},
    {'id': 'n_row', 'label': 'N-Row (Na, Ni, Nu, Ne, No)', 'characters': ['ナ', 'ニ', 'ヌ', 'ネ', 'ノ'], 'romaji': ['na', 'ni', 'nu', 'ne', 'no']},
    {'id': 'h_row', 'label': 'H-Row (Ha, Hi, Fu, He, Ho)', 'characters': ['ハ', 'ヒ', 'フ', 'ヘ', 'ホ'], 'romaji': ['ha', 'hi', 'fu', 'he', 'ho']},
    {'id': 'm_row', 'label': 'M-Row (Ma, Mi, Mu, Me, Mo)', 'characters': ['マ', 'ミ', 'ム', 'メ', 'モ'], 'romaji': ['ma', 'mi', 'mu', 'me', 'mo']},
    {'id': 'y_row', 'label': 'Y-Row (Ya, Yu, Yo)', 'characters': ['ヤ', 'ユ', 'ヨ'], 'romaji': ['ya', 'yu', 'yo']},
    {'id': 'r_row', 'label': 'R-Row (Ra, Ri, Ru, Re, Ro)', 'characters': ['ラ', 'リ', 'ル', 'レ', 'ロ'], 'romaji': ['ra', 'ri', 'ru', 're', 'ro']},
    {'id': 'w_row', 'label': 'W-Row (Wa, Wo, N)', 'characters': ['ワ', 'ヲ', 'ン'], 'romaji': ['wa', 'wo', 'n']},
]

ROWS_BY_TYPE = {
    LearningType.HIRAGANA: HIRAGANA_ROWS,
    LearningType.KATAKANA: KATAKANA_ROWS,
}

# Label sent to the generator for categories without a closed character set
OPEN_CATEGORY_HINT = {
    LearningType.KANJI: 'N5 Kanji',
}


def _build_group_index() -> dict:
    index = {}
    for learning_type, rows in ROWS_BY_TYPE.items():
        prefix = learning_type.value.lower()
        for row in rows:
            for char in row['characters']:
                index[char] = f"{prefix}:{row['id']}"
    return index


CHARACTER_GROUPS = _build_group_index()


def get_rows(learning_type: LearningType) -> list[dict]:
    """Get the selectable rows for a learning type (empty for open categories)."""
    return ROWS_BY_TYPE.get(learning_type, [])


def is_closed_category(learning_type: LearningType) -> bool:
    return learning_type in ROWS_BY_TYPE


def get_allowed_characters(learning_type: LearningType, row_ids: list[str]) -> set[str] | None:
    """Characters permitted for a row selection.

    Returns None for open categories (kanji, custom topics), which have no
    closed character set to enforce.
    """
    if not is_closed_category(learning_type):
        return None
    allowed = set()
    for row in ROWS_BY_TYPE[learning_type]:
        if row['id'] in row_ids:
            allowed.update(row['characters'])
    return allowed


def get_group_id(char: str) -> str | None:
    """Map a character back to its row, e.g. 'か' -> 'hiragana:k_row'."""
    return CHARACTER_GROUPS.get(char)


def get_group_label(group_id: str) -> str:
    """Human readable label for a group id."""
    prefix, _, row_id = group_id.partition(':')
    for learning_type, rows in ROWS_BY_TYPE.items():
        if learning_type.value.lower() != prefix:
            continue
        for row in rows:
            if row['id'] == row_id:
                return f"{learning_type.value} {row['label']}"
    return group_id
