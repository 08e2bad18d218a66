import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from thyme_api.core.errors import StoreError
from thyme_api.core.validation import CamelModel, RecordCreatedResponse, require_text, validate_email
from thyme_api.models.content import ContactSubmission, NewsletterSignup, Testimonial
from thyme_api.repository import RecordStore, get_record_store

router = APIRouter(tags=['content'])

logger = logging.getLogger(__name__)

FAQ_CACHE_CONTROL = 'public, s-maxage=3600, stale-while-revalidate=1800'
TESTIMONIAL_THANKS = 'Thank you for your testimonial! It will be reviewed before being published.'


class ContactRequest(CamelModel):
    first_name: str
    last_name: str
    email: str
    message: str
    phone: str | None = None
    subject: str | None = None
    source: str | None = None

    @field_validator('first_name', 'last_name', 'email', 'message', mode='before')
    @classmethod
    def validate_required_text(cls, value, info):
        return require_text(value, to_camel(info.field_name))

    @field_validator('email')
    @classmethod
    def validate_email_address(cls, value: str) -> str:
        return validate_email(value)


class NewsletterRequest(CamelModel):
    email: str | None = Field(default=None, validate_default=True)
    name: str | None = None
    source: str | None = None

    @field_validator('email', mode='before')
    @classmethod
    def validate_email_address(cls, value) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError('Email is required')
        return validate_email(require_text(value, 'email'))


class SubmitTestimonialRequest(CamelModel):
    name: str
    text: str
    rating: int

    @field_validator('name', 'text', mode='before')
    @classmethod
    def validate_required_text(cls, value, info):
        return require_text(value, info.field_name)

    @field_validator('rating', mode='before')
    @classmethod
    def validate_rating(cls, value) -> int:
        if value is None:
            raise ValueError('Missing required field: rating')
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 1 <= value <= 5:
            raise ValueError('Rating must be a number between 1 and 5')
        return round(value)


class FAQClickRequest(CamelModel):
    faq_id: str | None = Field(default=None, validate_default=True)

    @field_validator('faq_id', mode='before')
    @classmethod
    def validate_faq_id(cls, value) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError('FAQ ID is required')
        return value.strip()


class SubmittedTestimonialResponse(RecordCreatedResponse):
    message: str = TESTIMONIAL_THANKS


class ApprovedTestimonialResponse(CamelModel):
    name: str
    text: str
    rating: int
    approved: bool


class FAQResponse(CamelModel):
    id: str
    question: str
    answer: str
    category: str
    order: int
    click_count: int


class ComingSoonFeatureResponse(CamelModel):
    id: str
    title: str
    description: str
    icon: str
    eta: str
    status: str
    priority: str
    display_order: int


class SuccessResponse(BaseModel):
    success: bool = True


def store_failure(action: str) -> HTTPException:
    logger.exception('Record store failure while trying to %s', action)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f'Failed to {action}. Please try again.',
    )


@router.post('/contact', response_model=RecordCreatedResponse)
def submit_contact(data: ContactRequest, store: RecordStore = Depends(get_record_store)):
    submission = ContactSubmission(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        message=data.message,
        phone=data.phone or '',
        subject=data.subject or '',
        source=data.source or 'Contact Page',
    )
    try:
        return RecordCreatedResponse(id=store.create_contact(submission))
    except StoreError as exc:
        raise store_failure('submit contact form') from exc


@router.post('/newsletter', response_model=RecordCreatedResponse)
def subscribe_newsletter(data: NewsletterRequest, store: RecordStore = Depends(get_record_store)):
    signup = NewsletterSignup(email=data.email, name=data.name or '', source=data.source or 'Homepage')
    try:
        return RecordCreatedResponse(id=store.create_newsletter_signup(signup))
    except StoreError as exc:
        raise store_failure('subscribe') from exc


@router.get('/testimonials', response_model=list[ApprovedTestimonialResponse])
def list_testimonials(store: RecordStore = Depends(get_record_store)):
    try:
        testimonials = store.list_approved_testimonials()
    except StoreError as exc:
        raise store_failure('fetch testimonials') from exc

    return [
        ApprovedTestimonialResponse(name=item.name, text=item.text, rating=item.rating, approved=item.approved)
        for item in testimonials
    ]


@router.post('/testimonials', response_model=SubmittedTestimonialResponse)
def submit_testimonial(data: SubmitTestimonialRequest, store: RecordStore = Depends(get_record_store)):
    try:
        record_id = store.create_testimonial(Testimonial(name=data.name, text=data.text, rating=data.rating))
    except StoreError as exc:
        raise store_failure('submit testimonial') from exc

    return SubmittedTestimonialResponse(id=record_id)


@router.get('/faqs', response_model=list[FAQResponse])
def list_faqs(response: Response, store: RecordStore = Depends(get_record_store)):
    try:
        faqs = store.list_faqs()
    except StoreError as exc:
        raise store_failure('fetch FAQs') from exc

    response.headers['Cache-Control'] = FAQ_CACHE_CONTROL
    return [
        FAQResponse(
            id=faq.id,
            question=faq.question,
            answer=faq.answer,
            category=faq.category,
            order=faq.order,
            click_count=faq.click_count,
        )
        for faq in faqs
    ]


@router.post('/faq-clicks', response_model=SuccessResponse)
def track_faq_click(data: FAQClickRequest, store: RecordStore = Depends(get_record_store)):
    try:
        store.record_faq_click(data.faq_id)
    except StoreError as exc:
        raise store_failure('track FAQ click') from exc

    return SuccessResponse()


@router.get('/coming-soon', response_model=list[ComingSoonFeatureResponse])
def list_coming_soon_features(store: RecordStore = Depends(get_record_store)):
    try:
        features = store.list_coming_soon_features()
    except StoreError as exc:
        raise store_failure('fetch coming soon features') from exc

    return [
        ComingSoonFeatureResponse(
            id=feature.id,
            title=feature.title,
            description=feature.description,
            icon=feature.icon,
            eta=feature.eta,
            status=feature.status,
            priority=feature.priority,
            display_order=feature.display_order,
        )
        for feature in features
    ]
