from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from enum import Enum

from partybot.constants import PartyConstants

Base = declarative_base()

class PartyRole(Enum):
    OWNER = "owner"
    MEMBER = "member"
    NONE = "none"

class Party(Base):
    __tablename__ = 'party'
    # Ids are never handed out twice, even after the highest party is deleted
    __table_args__ = {'sqlite_autoincrement': True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(PartyConstants.PLAYER_ID_LENGTH), nullable=False, index=True)
    name = Column(String(PartyConstants.MAX_NAME_LENGTH), nullable=True, default=None)

    # Memberships are removed explicitly before the party row on disband
    members = relationship("PartyMember", back_populates="party", order_by="PartyMember.id")

    def __repr__(self):
        return f"<Party(id={self.id}, owner_id='{self.owner_id}', name='{self.name}')>"

class PartyMember(Base):
    __tablename__ = 'party_member'
    __table_args__ = {'sqlite_autoincrement': True}

    # Surrogate key so the ORM can address rows; (party_id, member_id) carries the meaning
    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(String(PartyConstants.PLAYER_ID_LENGTH), nullable=False, index=True)
    party_id = Column(Integer, ForeignKey('party.id'), nullable=False, index=True)

    party = relationship("Party", back_populates="members")

    def __repr__(self):
        return f"<PartyMember(party_id={self.party_id}, member_id='{self.member_id}')>"
