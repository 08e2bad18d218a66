"""Site content model definitions: contact, newsletter, testimonials, FAQs, roadmap."""

from dataclasses import dataclass

CONTACT_TABLE = 'Contact'
NEWSLETTER_TABLE = 'Newsletter Signups'
TESTIMONIALS_TABLE = 'Testimonials'
FAQS_TABLE = 'FAQs'
FAQ_CLICKS_TABLE = 'FAQ Clicks'
COMING_SOON_TABLE = 'Coming Soon Features'

DEFAULT_TESTIMONIAL_RATING = 5


@dataclass(frozen=True)
class ContactSubmission:
    first_name: str
    last_name: str
    email: str
    message: str
    phone: str = ''
    subject: str = ''
    source: str = 'Contact Page'

    def to_fields(self, submitted_at: str) -> dict:
        return {
            'FirstName': self.first_name,
            'LastName': self.last_name,
            'Email': self.email,
            'Phone': self.phone,
            'Subject': self.subject,
            'Message': self.message,
            'Source': self.source,
            'DateCreated': submitted_at,
        }


@dataclass(frozen=True)
class NewsletterSignup:
    email: str
    name: str = ''
    source: str = 'Homepage'
    status: str = 'Active'

    def to_fields(self, subscribed_at: str) -> dict:
        return {
            'Email': self.email,
            'Name': self.name,
            'Source': self.source,
            'Subscribed Date': subscribed_at,
            'Status': self.status,
        }


@dataclass(frozen=True)
class Testimonial:
    """A client testimonial; new ones wait for manual approval."""

    name: str
    text: str
    rating: int = DEFAULT_TESTIMONIAL_RATING
    approved: bool = False
    created_at: str = ''
    id: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'Testimonial':
        fields = record.get('fields') or {}
        if not fields.get('Name') or not fields.get('Text'):
            raise ValueError('Testimonial record is missing Name or Text.')

        rating = fields.get('Rating')
        return cls(
            name=fields['Name'],
            text=fields['Text'],
            rating=int(rating) if isinstance(rating, (int, float)) and rating else DEFAULT_TESTIMONIAL_RATING,
            approved=fields.get('Approved') is True,
            created_at=fields.get('DateCreated') or '',
            id=record.get('id'),
        )

    def to_fields(self, submitted_at: str) -> dict:
        return {
            'Name': self.name,
            'Text': self.text,
            'Rating': self.rating,
            'Approved': self.approved,
            'DateCreated': submitted_at,
        }


@dataclass(frozen=True)
class FAQ:
    id: str
    question: str
    answer: str
    category: str = ''
    order: int = 0
    click_count: int = 0

    @classmethod
    def from_record(cls, record: dict) -> 'FAQ':
        fields = record.get('fields') or {}
        if not record.get('id') or not fields.get('Question') or not fields.get('Answer'):
            raise ValueError('FAQ record is missing id, Question or Answer.')

        return cls(
            id=record['id'],
            question=fields['Question'],
            answer=fields['Answer'],
            category=fields.get('Category') or '',
            order=int(fields.get('Order') or 0),
            click_count=int(fields.get('ClickCount') or 0),
        )


@dataclass(frozen=True)
class ComingSoonFeature:
    id: str
    title: str
    description: str = ''
    icon: str = ''
    eta: str = ''
    status: str = 'Planned'
    priority: str = ''
    display_order: int = 0
    is_visible: bool = False

    @classmethod
    def from_record(cls, record: dict) -> 'ComingSoonFeature':
        fields = record.get('fields') or {}
        if not record.get('id') or not fields.get('Title'):
            raise ValueError('Coming soon record is missing id or Title.')

        return cls(
            id=record['id'],
            title=fields['Title'],
            description=fields.get('Description') or '',
            icon=fields.get('Icon') or '',
            eta=fields.get('ETA') or '',
            status=fields.get('Status') or 'Planned',
            priority=fields.get('Priority') or '',
            display_order=int(fields.get('DisplayOrder') or 0),
            is_visible=fields.get('IsVisible') is True,
        )
