
import os
import pandas as pd
import streamlit as st

from luckyday.checkin.server import CheckInServer, qr_png
from luckyday.core.config import ConfigError, load_config
from luckyday.core.logging import configure_logging
from luckyday.datasource.database import load_participants_from_db
from luckyday.datasource.export import save_winners_to_excel, winners_frame, write_audit
from luckyday.datasource.loaders import (
    DataSourceError, load_participants_from_csv, load_participants_from_excel, load_prizes_from_excel,
)
from luckyday.draw.engine import DrawEngine
from luckyday.i18n import Translator

configure_logging()
st.set_page_config(page_title='Lucky Day', layout='wide')

try:
    config = load_config()
except ConfigError as exc:
    st.error(str(exc))
    st.stop()

lang = st.sidebar.selectbox('Language / 语言', ['zh', 'en'], index=0 if config.language != 'en' else 1)
tr = Translator(lang)

st.title('🎉 ' + tr.t('app.title'))

modes = {'excel': tr.t('data.source_excel'), 'csv': tr.t('data.source_csv'),
         'db': tr.t('data.source_db'), 'qr': tr.t('data.source_qr')}
mode = st.sidebar.radio(tr.t('data.source'), list(modes), format_func=modes.get,
                        index=list(modes).index(config.datasource.type) if config.datasource.type in modes else 0)
excel_path = st.sidebar.text_input('Excel', value=config.datasource.excel.path)


def _prizes():
    # prizes from the config file win over the workbook
    return config.prizes or load_prizes_from_excel(excel_path, language=lang)


if mode == 'qr' and 'engine' not in st.session_state:
    server = st.session_state.get('checkin_server')
    if server is None:
        server = CheckInServer(config.checkin, tr)
        server.start()
        st.session_state['checkin_server'] = server
    st.sidebar.success(tr.t('qr.ready'))
    st.sidebar.image(qr_png(server.url), caption=server.url)
    st.sidebar.metric(tr.t('qr.total_participants'), server.registry.count())

if st.sidebar.button(tr.t('data.load') if mode != 'qr' else tr.t('qr.close')):
    try:
        if mode == 'excel':
            participants = load_participants_from_excel(excel_path)
        elif mode == 'csv':
            participants = load_participants_from_csv(config.datasource.csv.path)
        elif mode == 'db':
            participants = load_participants_from_db(config.datasource.database.url)
        else:
            server = st.session_state.pop('checkin_server', None)
            participants = []
            if server is not None:
                server.stop()
                participants = server.participants()
        prizes = _prizes()
    except DataSourceError as exc:
        st.error(f"{tr.t('data.load_failed')}: {exc}")
    else:
        if not participants:
            st.error(tr.t('data.empty_list') if mode != 'qr' else tr.t('qr.no_participants'))
        else:
            st.session_state['engine'] = DrawEngine(participants, prizes, seed=config.seed)
            st.success(f"{tr.t('data.load_success')} {len(participants)} {tr.t('data.participants')}, "
                       f"{len(prizes)} {tr.t('data.prizes')}")

engine = st.session_state.get('engine')
if engine is None:
    st.stop()

prizes = engine.prizes()
if not prizes:
    st.stop()
st.metric(tr.t('draw.eligible'), len(engine.eligible_participants()))
prize = st.selectbox(tr.t('draw.prize'), prizes,
                     format_func=lambda p: f"{tr.prize_level(p.level)} · {p.name} ({p.drawn_count}/{p.count})")

col_roll, col_draw, col_reset = st.columns(3)
if col_roll.button(tr.t('draw.roll')):
    st.write(' · '.join(engine.random_names(12, placeholder=tr.t('draw.no_candidates'))))

failure = engine.check_draw(prize.id)
if col_draw.button(tr.t('draw.start'), disabled=failure is not None):
    winners, ok = engine.draw(prize.id)
    if ok:
        st.balloons()
        st.dataframe(pd.DataFrame([{'ID': w.id, 'Name': w.name} for w in winners]))
    else:
        st.warning(tr.t(f'draw.{engine.check_draw(prize.id).value}'))
elif failure is not None:
    st.caption(tr.t(f'draw.{failure.value}'))

if col_reset.button(tr.t('draw.reset')):
    engine.reset_prize(prize.id)
    st.rerun()

st.subheader(tr.t('draw.winners'))
out = winners_frame(engine)
st.dataframe(out)

st.download_button(tr.t('export.csv'), data=out.to_csv(index=False).encode('utf-8-sig'),
                   file_name='winners.csv', mime='text/csv')
if mode == 'excel' and st.button(tr.t('export.excel')):
    try:
        save_winners_to_excel(excel_path, out)
        st.success(tr.t('export.excel_saved'))
    except DataSourceError as exc:
        st.error(str(exc))
if st.button(tr.t('export.write_audit')):
    audit_path = write_audit(engine, seed=config.seed, outdir=os.getenv('LUCKYDAY_RUNS_DIR', 'runs'))
    st.success(f"{tr.t('export.audit')}: {audit_path}")
