#!/usr/bin/env python3
# kana.py - Character-width conversions used as fallback candidates
#
#   to_wide_latin      ASCII -> full-width (全角英数)
#   to_half_katakana   hiragana -> half-width katakana (半角カナ)
#   to_wide_katakana   hiragana -> full-width katakana (全角カナ)

IDEOGRAPHIC_SPACE = '　'

_HALF_KATAKANA = {
    'あ': 'ｱ', 'い': 'ｲ', 'う': 'ｳ', 'え': 'ｴ', 'お': 'ｵ',
    'か': 'ｶ', 'き': 'ｷ', 'く': 'ｸ', 'け': 'ｹ', 'こ': 'ｺ',
    'さ': 'ｻ', 'し': 'ｼ', 'す': 'ｽ', 'せ': 'ｾ', 'そ': 'ｿ',
    'た': 'ﾀ', 'ち': 'ﾁ', 'つ': 'ﾂ', 'て': 'ﾃ', 'と': 'ﾄ',
    'な': 'ﾅ', 'に': 'ﾆ', 'ぬ': 'ﾇ', 'ね': 'ﾈ', 'の': 'ﾉ',
    'は': 'ﾊ', 'ひ': 'ﾋ', 'ふ': 'ﾌ', 'へ': 'ﾍ', 'ほ': 'ﾎ',
    'ま': 'ﾏ', 'み': 'ﾐ', 'む': 'ﾑ', 'め': 'ﾒ', 'も': 'ﾓ',
    'や': 'ﾔ', 'ゆ': 'ﾕ', 'よ': 'ﾖ',
    'ら': 'ﾗ', 'り': 'ﾘ', 'る': 'ﾙ', 'れ': 'ﾚ', 'ろ': 'ﾛ',
    'わ': 'ﾜ', 'を': 'ｦ', 'ん': 'ﾝ',
    'が': 'ｶﾞ', 'ぎ': 'ｷﾞ', 'ぐ': 'ｸﾞ', 'げ': 'ｹﾞ', 'ご': 'ｺﾞ',
    'ざ': 'ｻﾞ', 'じ': 'ｼﾞ', 'ず': 'ｽﾞ', 'ぜ': 'ｾﾞ', 'ぞ': 'ｿﾞ',
    'だ': 'ﾀﾞ', 'ぢ': 'ﾁﾞ', 'づ': 'ﾂﾞ', 'で': 'ﾃﾞ', 'ど': 'ﾄﾞ',
    'ば': 'ﾊﾞ', 'び': 'ﾋﾞ', 'ぶ': 'ﾌﾞ', 'べ': 'ﾍﾞ', 'ぼ': 'ﾎﾞ',
    'ぱ': 'ﾊﾟ', 'ぴ': 'ﾋﾟ', 'ぷ': 'ﾌﾟ', 'ぺ': 'ﾍﾟ', 'ぽ': 'ﾎﾟ',
    'ゔ': 'ｳﾞ',
    'ぁ': 'ｧ', 'ぃ': 'ｨ', 'ぅ': 'ｩ', 'ぇ': 'ｪ', 'ぉ': 'ｫ',
    'ゃ': 'ｬ', 'ゅ': 'ｭ', 'ょ': 'ｮ', 'っ': 'ｯ',
    'ー': 'ｰ', '、': '､', '。': '｡', '「': '｢', '」': '｣',
    '゛': 'ﾞ', '゜': 'ﾟ', '・': '･',
}


def to_wide_latin(text):
    """
    Convert printable ASCII to full-width forms.

    Space becomes the ideographic space and '¥' becomes '￥'; every other
    character is left unchanged.
    """
    chars = []
    for c in text:
        if c == ' ':
            chars.append(IDEOGRAPHIC_SPACE)
        elif c == '¥':
            chars.append('￥')
        elif ' ' < c < '\u007F':
            chars.append(chr(ord(c) - 0x20 + 0xFF00))
        else:
            chars.append(c)
    return ''.join(chars)


def to_half_katakana(text):
    """Convert hiragana (and a few kana punctuation marks) to half-width katakana."""
    return ''.join(_HALF_KATAKANA.get(c, c) for c in text)


def to_wide_katakana(text):
    """Convert hiragana ぁ..ゖ to full-width katakana ァ..ヶ."""
    return ''.join(chr(ord(c) + 0x60) if 'ぁ' <= c <= 'ゖ' else c for c in text)
