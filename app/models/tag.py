from app.extensions import db

# Association table for many-to-many Problem <-> Tag relationship.
problem_tags = db.Table(
    'problem_tags',
    db.Column(
        'problem_id',
        db.Integer,
        db.ForeignKey('problem.id', ondelete='CASCADE'),
        primary_key=True,
    ),
    db.Column(
        'tag_id',
        db.Integer,
        db.ForeignKey('tag.id', ondelete='CASCADE'),
        primary_key=True,
    ),
)

# Colours for common problem categories; anything else gets DEFAULT_TAG_COLOR.
TAG_COLORS = {
    'array': '#2196F3',
    'string': '#4CAF50',
    'hash-table': '#FFC107',
    'math': '#9C27B0',
    'dynamic-programming': '#FF5722',
    'sorting': '#3F51B5',
    'greedy': '#00BCD4',
    'depth-first-search': '#795548',
    'binary-search': '#607D8B',
    'breadth-first-search': '#FF9800',
    'tree': '#8BC34A',
    'matrix': '#E91E63',
    'two-pointers': '#673AB7',
    'bit-manipulation': '#CDDC39',
    'heap': '#009688',
    'graph': '#FFEB3B',
    'design': '#FF4081',
    'simulation': '#03A9F4',
    'prefix-sum': '#FF5252',
    'stack': '#7986CB',
    'queue': '#FF8A65',
    'binary-tree': '#4DB6AC',
    'recursion': '#BA68C8',
    'linked-list': '#FFD54F',
}
DEFAULT_TAG_COLOR = '#888888'


def tag_color(name: str) -> str:
    """Pick a stable colour for a tag name, matching on known categories."""
    normalized = '-'.join(name.lower().split())
    if normalized in TAG_COLORS:
        return TAG_COLORS[normalized]
    for key, color in TAG_COLORS.items():
        if key in normalized:
            return color
    return DEFAULT_TAG_COLOR


class Tag(db.Model):
    """A per-owner topic label that can be attached to problems."""

    __tablename__ = 'tag'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'name', name='uq_tag_user_name'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('user.id'), nullable=False, index=True
    )
    name = db.Column(db.String(100), nullable=False)
    color = db.Column(db.String(20), nullable=False, default=DEFAULT_TAG_COLOR)

    problems = db.relationship(
        'Problem', secondary=problem_tags, back_populates='tags', lazy='dynamic'
    )

    def __repr__(self) -> str:
        return f'<Tag {self.name!r}>'
