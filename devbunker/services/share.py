"""
Share links for content items.
"""

from typing import List, NamedTuple, Optional
from urllib.parse import quote, urlencode


SITE_NAME = 'DevBunker'


class ShareTarget(NamedTuple):
    key: str
    label: str
    url: str


def share_url(base_url: str, content_id: str) -> str:
    """Public link that opens a content item in the explore page."""
    return f"{base_url.rstrip('/')}/dashboard/explore?{urlencode({'id': content_id})}"


def share_links(url: str, title: str, content_type: str = 'post',
                facebook_app_id: Optional[str] = None) -> List[ShareTarget]:
    """Share targets in the order the share popup lists them."""
    u = quote(url, safe='')
    t = quote(title or '', safe='')
    intro = quote(f"Check this out: {title}", safe='')
    body = quote(f"Hey, check this out: {url}", safe='')
    email_subject = quote(f"Interesting {content_type} on {SITE_NAME}", safe='')
    gmail_subject = quote(f"Check this {content_type} on {SITE_NAME}", safe='')

    targets = [
        ShareTarget('facebook', 'Facebook', f"https://www.facebook.com/sharer/sharer.php?u={u}&quote={intro}"),
    ]
    if facebook_app_id:
        targets.append(ShareTarget(
            'messenger', 'Messenger',
            f"https://www.facebook.com/dialog/send?link={u}&app_id={quote(facebook_app_id)}&redirect_uri={u}",
        ))
    targets.extend([
        ShareTarget('whatsapp', 'WhatsApp', f"https://api.whatsapp.com/send?text={t}%20{u}"),
        ShareTarget('twitter', 'Twitter', f"https://twitter.com/intent/tweet?url={u}&text={t}"),
        ShareTarget('linkedin', 'LinkedIn', f"https://www.linkedin.com/sharing/share-offsite/?url={u}"),
        ShareTarget('telegram', 'Telegram', f"https://t.me/share/url?url={u}&text={t}"),
        ShareTarget('pinterest', 'Pinterest', f"https://pinterest.com/pin/create/button/?url={u}&description={t}"),
        ShareTarget('email', 'Email', f"mailto:?subject={email_subject}&body={body}"),
        ShareTarget('gmail', 'Gmail', f"https://mail.google.com/mail/?view=cm&fs=1&su={gmail_subject}&body={body}"),
    ])
    return targets
