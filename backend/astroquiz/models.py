from astroquiz import db
from astroquiz.errors import MalformedDataError
import json


class SheetRow(db.Model):
    """One row of a named table, stored as a JSON list of cell texts."""
    __tablename__ = 'sheet_row'
    __table_args__ = (
        db.UniqueConstraint('sheet', 'row_number', name='uq_sheet_row_sheet_row_number'),
    )
    id = db.Column(db.Integer, primary_key=True)
    sheet = db.Column(db.String(64), nullable=False, index=True)
    row_number = db.Column(db.Integer, nullable=False)  # 1-indexed, row 1 is the header
    cells = db.Column(db.Text, nullable=False, default='[]')  # JSON-encoded list of strings

    def get_cells(self):
        try:
            values = json.loads(self.cells or '[]')
        except ValueError as exc:
            raise MalformedDataError(f'{self.sheet} row {self.row_number} is not valid JSON') from exc
        return [str(v) for v in values]

    def set_cells(self, values):
        self.cells = json.dumps(list(values))

    def to_dict(self):
        return {
            'id': self.id,
            'sheet': self.sheet,
            'row_number': self.row_number,
            'cells': self.get_cells(),
        }
